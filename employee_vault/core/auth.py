"""Azure AD bearer token validation for the employee API."""

from __future__ import annotations

import json
import logging
import time
import urllib.error
import urllib.request
from typing import Any

from fastapi import HTTPException, status
from jose import jwk, jwt
from jose.constants import Algorithms
from jose.exceptions import ExpiredSignatureError, JWSSignatureError, JWTClaimsError, JWTError

logger = logging.getLogger("azure_auth")

_JWKS_TTL_SECONDS = 24 * 60 * 60


class JwksCache:
    """Per-tenant signing keys, refreshed once they are older than the TTL.

    A stale entry is served when the refresh fails.
    """

    def __init__(self, ttl_seconds: float = _JWKS_TTL_SECONDS) -> None:
        self.ttl_seconds = ttl_seconds
        self._keys: dict[str, dict[str, Any]] = {}
        self._fetched_at: dict[str, float] = {}

    def clear(self) -> None:
        self._keys.clear()
        self._fetched_at.clear()

    def get(self, tenant_id: str) -> dict[str, Any]:
        now = time.time()
        fetched_at = self._fetched_at.get(tenant_id)
        if fetched_at is not None and now - fetched_at < self.ttl_seconds:
            return self._keys[tenant_id]

        jwks_uri = f"https://login.microsoftonline.com/{tenant_id}/discovery/v2.0/keys"
        logger.info("Fetching JWKS from %s", jwks_uri)

        try:
            req = urllib.request.Request(jwks_uri)  # noqa: S310
            with urllib.request.urlopen(req, timeout=15) as resp:  # noqa: S310
                keys = json.loads(resp.read().decode())
        except (urllib.error.URLError, urllib.error.HTTPError) as e:
            logger.error("Failed to fetch JWKS: %s", e)
            if tenant_id in self._keys:
                logger.warning("Using expired JWKS from cache for tenant %s", tenant_id)
                return self._keys[tenant_id]
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail=f"Could not fetch JWKS: {e}",
            ) from e

        self._keys[tenant_id] = keys
        self._fetched_at[tenant_id] = now
        return keys


jwks_cache = JwksCache()


def get_jwks(tenant_id: str) -> dict[str, Any]:
    return jwks_cache.get(tenant_id)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def get_signing_key(token: str, tenant_id: str) -> dict[str, str]:
    try:
        header = jwt.get_unverified_header(token)
    except JWTError as e:
        raise _unauthorized(f"Invalid token header: {e}") from e

    kid = header.get("kid")
    if not kid:
        raise _unauthorized("Token has no 'kid' in header")

    for key in get_jwks(tenant_id).get("keys", []):
        if key.get("kid") == kid:
            return key

    raise _unauthorized(f"No matching signing key for kid: {kid}")


def expected_issuers(tenant_id: str) -> tuple[str, ...]:
    # v2.0 tokens and v1.0 (sts.windows.net) tokens
    return (
        f"https://login.microsoftonline.com/{tenant_id}/v2.0",
        f"https://sts.windows.net/{tenant_id}/",
    )


def expected_audiences(client_id: str) -> list[str]:
    return [client_id, f"api://{client_id}"]


_DECODE_OPTIONS = {
    "verify_signature": True,
    "verify_aud": True,
    "verify_iss": True,
    "verify_exp": True,
    "require": ["exp", "iss", "aud"],
}


def _claims_failure(error: JWTClaimsError, issuers: tuple[str, ...], audiences: list[str]) -> HTTPException:
    reason = str(error).lower()
    if "audience" in reason:
        return _unauthorized(f"Invalid token audience. Expected one of: {audiences}")
    if "issuer" in reason:
        return _unauthorized(f"Invalid token issuer. Expected one of: {list(issuers)}")
    return _unauthorized("Invalid authentication credentials")


def validate_token(token: str, tenant_id: str, client_id: str) -> dict[str, Any]:
    """Verify an Azure AD access token for this API and return its claims.

    Both token versions are accepted, addressed either to the bare client id
    or to its ``api://`` application id URI.
    """
    if not tenant_id or not client_id:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Missing Azure AD configuration",
        )

    signing_key = get_signing_key(token, tenant_id)
    algorithm = signing_key.get("alg", Algorithms.RS256)
    public_key = jwk.construct(signing_key, algorithm=algorithm)
    issuers = expected_issuers(tenant_id)
    audiences = expected_audiences(client_id)

    claims_error: JWTClaimsError | None = None
    for audience in audiences:
        try:
            # python-jose matches the issuer against any entry of the tuple
            return jwt.decode(
                token,
                public_key,
                algorithms=[algorithm],
                audience=audience,
                issuer=issuers,
                options=_DECODE_OPTIONS,
            )
        except ExpiredSignatureError as e:
            raise _unauthorized("Token is expired") from e
        except JWSSignatureError as e:
            raise _unauthorized("Invalid token signature") from e
        except JWTClaimsError as e:
            claims_error = e
        except JWTError as e:
            raise _unauthorized("Invalid authentication credentials") from e

    if claims_error is None:
        raise _unauthorized("Invalid authentication credentials")
    raise _claims_failure(claims_error, issuers, audiences)


def extract_roles_from_token(payload: dict[str, Any]) -> list[str]:
    """App roles assigned to the caller; anything but a list of names yields none."""
    roles = payload.get("roles")
    if not isinstance(roles, list):
        return []
    return [str(role) for role in roles if isinstance(role, str | int)]
