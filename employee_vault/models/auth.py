"""Authenticated caller derived from an Azure AD access token."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class UserInfo(BaseModel):
    id: str | None = None
    name: str | None = None
    email: str | None = None
    roles: list[str] = []

    @classmethod
    def from_claims(cls, claims: dict[str, Any], roles: list[str]) -> UserInfo:
        return cls(
            id=claims.get("oid"),
            name=claims.get("name"),
            email=claims.get("preferred_username"),
            roles=roles,
        )
