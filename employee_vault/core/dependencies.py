from __future__ import annotations

import logging

from fastapi import Depends, Header, HTTPException, status

from employee_vault.core.auth import extract_roles_from_token, validate_token
from employee_vault.core.config import settings
from employee_vault.models.auth import UserInfo

logger = logging.getLogger(__name__)


def _bearer_token(authorization: str | None) -> str:
    scheme, _, token = (authorization or "").partition(" ")
    if scheme != "Bearer" or not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return token


async def get_current_user(authorization: str | None = Header(None)) -> UserInfo:
    token = _bearer_token(authorization)

    try:
        payload = validate_token(
            token,
            settings.AZURE_AD_TENANT_ID,
            settings.AZURE_AD_CLIENT_ID,
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Token validation error: %s", e)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e

    return UserInfo.from_claims(payload, roles=extract_roles_from_token(payload))


def require_role(*roles: str):
    async def _check_role(user: UserInfo = Depends(get_current_user)) -> UserInfo:  # noqa: B008
        if not any(r in user.roles for r in roles):
            logger.warning("User %s denied, requires one of %s", user.id, roles)
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Insufficient permissions. Required: {', '.join(roles)}",
            )
        return user

    return _check_role
