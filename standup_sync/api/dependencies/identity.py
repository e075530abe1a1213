# standup_sync/api/dependencies/identity.py
from typing import Optional

from fastapi import Header, HTTPException, status

from standup_sync.core.config import get_settings
from standup_sync.schemas.identity import Identity

_TRUTHY = {"1", "true", "yes", "on"}


def verify_proxy_key(internal_api_key: Optional[str]) -> None:
    """
    Check that identity headers come from the trusted auth proxy.

    Rules
    -----
    - APP_ENV in ("local", "test"):
        - If INTERNAL_API_KEY is not set -> headers are trusted as-is.
        - If INTERNAL_API_KEY is set      -> header must match the configured key.
    - APP_ENV not in ("local", "test")  [e.g. dev/stage/prod]:
        - INTERNAL_API_KEY must be set, otherwise 500 (misconfiguration).
        - Header must be present and match INTERNAL_API_KEY, otherwise 401.
    """
    settings = get_settings()
    env = (settings.APP_ENV or "local").lower()
    expected = getattr(settings, "INTERNAL_API_KEY", None)

    if env in ("local", "test"):
        if not expected:
            return
        if not internal_api_key or internal_api_key != expected:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid or missing internal API key.",
            )
        return

    if not expected:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="INTERNAL_API_KEY not configured for this environment.",
        )

    if not internal_api_key or internal_api_key != expected:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing internal API key.",
        )


async def get_optional_identity(
    user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
    user_email: Optional[str] = Header(default=None, alias="X-User-Email"),
    user_name: Optional[str] = Header(default=None, alias="X-User-Name"),
    user_is_admin: Optional[str] = Header(default=None, alias="X-User-Is-Admin"),
    internal_api_key: Optional[str] = Header(
        default=None,
        alias="X-Internal-Api-Key",
        description="Key of the upstream auth proxy, required outside local/test.",
    ),
) -> Optional[Identity]:
    """
    Identity asserted by the auth proxy, or None for anonymous callers.
    """
    verify_proxy_key(internal_api_key)
    if not user_id:
        return None
    return Identity(
        uid=user_id,
        email=user_email or "",
        display_name=user_name or "",
        is_admin=(user_is_admin or "").strip().lower() in _TRUTHY,
    )


async def get_identity(
    user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
    user_email: Optional[str] = Header(default=None, alias="X-User-Email"),
    user_name: Optional[str] = Header(default=None, alias="X-User-Name"),
    user_is_admin: Optional[str] = Header(default=None, alias="X-User-Is-Admin"),
    internal_api_key: Optional[str] = Header(default=None, alias="X-Internal-Api-Key"),
) -> Identity:
    """
    Like ``get_optional_identity`` but rejects anonymous callers with 401.
    """
    identity = await get_optional_identity(
        user_id=user_id,
        user_email=user_email,
        user_name=user_name,
        user_is_admin=user_is_admin,
        internal_api_key=internal_api_key,
    )
    if identity is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required.",
        )
    return identity


async def verify_internal_api_key(
    internal_api_key: Optional[str] = Header(default=None, alias="X-Internal-Api-Key"),
) -> None:
    """
    Guard for /internal endpoints, which schedulers call without a user identity.
    """
    verify_proxy_key(internal_api_key)
