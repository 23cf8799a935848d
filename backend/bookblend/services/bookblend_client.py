"""
HTTP client for the upstream BookBlend API.

The upstream owns Goodreads scraping and compatibility scoring; this client
only fetches JSON and turns failures into UpstreamUnavailable with a message
that is safe to show to end users. No retries.
"""
import logging
from typing import Any, Dict, Optional

import requests
from pydantic import ValidationError

from bookblend.core.config import settings
from bookblend.core.errors import UpstreamUnavailable
from bookblend.core.identifiers import CanonicalId, UsernameId
from bookblend.schemas.user import GoodreadsProfile
from bookblend.utils.timing import time_operation

logger = logging.getLogger(__name__)

USER_ERROR_MESSAGES = {
    400: "That doesn't look like a valid Goodreads profile. Check the ID, username, or URL.",
    403: "This Goodreads profile is private. Ask your friend to make their profile public and try again.",
    404: "We couldn't find that Goodreads profile. Double-check the ID, username, or URL.",
}

BLEND_ERROR_MESSAGES = {
    400: "We couldn't blend these profiles. Check both user IDs and try again.",
    403: "One of these Goodreads profiles is private, so we can't read their shelves.",
    404: "We couldn't find one of these Goodreads profiles.",
}

GENERIC_ERROR_MESSAGE = "The BookBlend service is having trouble right now. Please try again in a minute."


class BookBlendClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = (base_url or settings.BOOKBLEND_BASE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.UPSTREAM_TIMEOUT_SECONDS
        self.session = session or requests.Session()

    def get_user(self, user_id: CanonicalId) -> Dict[str, Any]:
        """Fetch `{user: {...}, friends: [...]}` for a numeric id or username."""
        if isinstance(user_id, UsernameId):
            params = {"username": user_id.handle}
        else:
            params = {"user_id": str(user_id)}
        return self._get("/user", params, USER_ERROR_MESSAGES)

    def get_blend(self, user_id1: str, user_id2: str) -> Dict[str, Any]:
        """Fetch an opaque compatibility payload for two users."""
        params = {"user_id1": user_id1, "user_id2": user_id2}
        return self._get("/blend", params, BLEND_ERROR_MESSAGES)

    def _get(self, path: str, params: Dict[str, str], messages: Dict[int, str]) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            with time_operation(f"upstream GET {path}", log_fn=logger.info):
                response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning("[UPSTREAM] GET %s params=%s failed: %s", path, params, e)
            raise UpstreamUnavailable(GENERIC_ERROR_MESSAGE, detail=str(e)) from e

        if not response.ok:
            body = response.text[:500]
            logger.warning(
                "[UPSTREAM] GET %s params=%s status=%s body=%s",
                path,
                params,
                response.status_code,
                body,
            )
            raise UpstreamUnavailable(
                messages.get(response.status_code, GENERIC_ERROR_MESSAGE),
                status_code=response.status_code,
                detail=body,
            )

        try:
            return response.json()
        except ValueError as e:
            logger.warning("[UPSTREAM] GET %s returned non-JSON body: %s", path, response.text[:200])
            raise UpstreamUnavailable(
                GENERIC_ERROR_MESSAGE,
                status_code=response.status_code,
                detail=response.text[:500],
            ) from e


def get_bookblend_client() -> BookBlendClient:
    """FastAPI dependency; overridden in tests."""
    return BookBlendClient()


def profile_from_payload(payload: Any, user_id: CanonicalId) -> GoodreadsProfile:
    """Pull the `user` object out of a /user response, or raise UpstreamUnavailable."""
    user_data = payload.get("user") if isinstance(payload, dict) else None
    if not isinstance(user_data, dict):
        raise UpstreamUnavailable(GENERIC_ERROR_MESSAGE, detail=f"missing user object for {user_id}")

    try:
        return GoodreadsProfile.model_validate(user_data)
    except ValidationError as e:
        raise UpstreamUnavailable(GENERIC_ERROR_MESSAGE, detail=str(e)) from e
