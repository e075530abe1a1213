# standup_sync/services/functions_client.py
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from standup_sync.core.config import get_settings
from standup_sync.core.exceptions import RemoteCallError

logger = logging.getLogger(__name__)


class FunctionsClient:
    """
    Minimal client for HTTPS callable functions.

    Responsibilities
    ----------------
    - Invoke a function by name with a JSON payload wrapped as ``{"data": ...}``.
    - Unwrap ``{"result": ...}`` on success.
    - Turn ``{"error": {...}}`` bodies and non-2xx responses into
      RemoteCallError, carrying the provider-supplied message when present.

    Notes
    -----
    - The caller's ID token is forwarded as a bearer token so the function
      can enforce its own claims (e.g. admin-only role promotion).
    - Nothing is retried; callers surface the error to the user.
    """

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 30.0,
    ) -> None:
        if not base_url:
            raise ValueError("base_url is required")

        self._base_url = base_url.rstrip("/")
        self._timeout_seconds = timeout_seconds

    def function_url(self, name: str) -> str:
        return f"{self._base_url}/{name.lstrip('/')}"

    async def call(
        self,
        name: str,
        payload: Optional[Dict[str, Any]] = None,
        *,
        id_token: Optional[str] = None,
    ) -> Any:
        """
        Invoke the callable function ``name`` and return its ``result``.

        Raises RemoteCallError on transport failures, non-2xx responses and
        error envelopes.
        """
        headers = {"Content-Type": "application/json"}
        if id_token:
            headers["Authorization"] = f"Bearer {id_token}"

        try:
            async with httpx.AsyncClient(timeout=self._timeout_seconds) as client:
                resp = await client.post(
                    self.function_url(name),
                    json={"data": payload or {}},
                    headers=headers,
                )
        except httpx.HTTPError as exc:
            logger.error("Callable %s unreachable: %s", name, exc)
            raise RemoteCallError(f"Could not reach function '{name}'.") from exc

        try:
            body = resp.json()
        except ValueError:
            body = None

        if resp.status_code // 100 != 2 or (isinstance(body, dict) and "error" in body):
            message = _error_message(body) or f"Function '{name}' failed (status={resp.status_code})."
            logger.error("Callable %s failed (status=%s): %s", name, resp.status_code, message)
            raise RemoteCallError(message)

        if not isinstance(body, dict) or "result" not in body:
            logger.error("Callable %s returned an unexpected envelope: %r", name, body)
            raise RemoteCallError(f"Function '{name}' returned an invalid response.")

        return body["result"]


def _error_message(body: Any) -> Optional[str]:
    if not isinstance(body, dict):
        return None
    error = body.get("error")
    if isinstance(error, dict):
        return error.get("message") or error.get("status")
    if isinstance(error, str):
        return error
    return None


# Simple singleton-style accessor wired to app settings
_functions_client_instance: Optional[FunctionsClient] = None


def get_functions_client() -> FunctionsClient:
    """
    Lazily construct a FunctionsClient instance using application settings.

    Raises RemoteCallError when FUNCTIONS_BASE_URL is not configured, so
    feature endpoints report the misconfiguration instead of crashing.
    """
    global _functions_client_instance
    if _functions_client_instance is None:
        settings = get_settings()
        if not settings.FUNCTIONS_BASE_URL:
            raise RemoteCallError(
                "FUNCTIONS_BASE_URL must be configured to call remote functions."
            )
        _functions_client_instance = FunctionsClient(
            base_url=str(settings.FUNCTIONS_BASE_URL),
            timeout_seconds=settings.FUNCTIONS_TIMEOUT_SECONDS,
        )
    return _functions_client_instance
