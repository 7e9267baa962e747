"""Resolve a bearer token to a user id via the identity provider's /auth/v1/user endpoint."""

from typing import Optional

import httpx

from mealgen.config import settings
from mealgen.errors import AuthenticationError, ServiceUnavailableError
from mealgen.logging import get_logger

logger = get_logger(__name__)


class CallerVerifier:
    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout_s: Optional[float] = None,
    ) -> None:
        self._base_url = (base_url or settings.auth_base_url).rstrip("/")
        self._api_key = api_key if api_key is not None else settings.auth_api_key
        self._timeout_s = timeout_s or settings.auth_timeout_s

    def verify(self, token: str) -> str:
        if not token:
            raise AuthenticationError("Authentication required")
        try:
            resp = httpx.get(
                f"{self._base_url}/auth/v1/user",
                headers={"apikey": self._api_key, "Authorization": f"Bearer {token}"},
                timeout=self._timeout_s,
            )
        except httpx.HTTPError as exc:
            logger.error("auth.verify.unreachable error=%s", exc)
            raise ServiceUnavailableError("Authentication service unavailable") from exc
        if resp.status_code in (401, 403):
            raise AuthenticationError("Invalid authentication")
        if resp.status_code >= 400:
            logger.error("auth.verify.failure status=%s", resp.status_code)
            raise ServiceUnavailableError("Authentication service unavailable")
        user_id = (resp.json() or {}).get("id")
        if not user_id:
            raise AuthenticationError("Invalid authentication")
        return str(user_id)


caller_verifier = CallerVerifier()
