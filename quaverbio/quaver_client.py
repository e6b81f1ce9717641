from __future__ import annotations

import logging
from typing import Any

import requests

from .models import ProfileRecord


logger = logging.getLogger(__name__)

API_URL = "https://api.quavergame.com"
TIMEOUT_SECONDS = 30


class QuaverApiError(Exception):
    """Base class for failures talking to the Quaver API."""


class QuaverRequestError(QuaverApiError):
    pass


class QuaverJsonError(QuaverApiError):
    pass


class QuaverDeserializeError(QuaverApiError):
    pass


class QuaverClient:
    def __init__(
        self,
        *,
        base_url: str = API_URL,
        timeout: float = TIMEOUT_SECONDS,
        session: requests.Session | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _get_json(self, path: str) -> Any:
        try:
            response = self.session.get(f"{self.base_url}{path}", timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise QuaverRequestError(f"Failed to query the Quaver API: {exc}") from exc

        try:
            return response.json()
        except ValueError as exc:
            raise QuaverJsonError(f"Failed to parse the API response into valid JSON: {exc}") from exc

    def get_user(self, user_id: int) -> ProfileRecord:
        payload = self._get_json(f"/v2/user/{user_id}")
        user = payload.get("user") if isinstance(payload, dict) else None
        if user is None:
            raise QuaverDeserializeError(
                f"Failed to deserialize the API response: no 'user' object for id {user_id}"
            )
        try:
            record = ProfileRecord.from_payload(user)
        except ValueError as exc:
            raise QuaverDeserializeError(f"Failed to deserialize the API response: {exc}") from exc

        logger.debug("Fetched Quaver profile %s (%s).", record.id, record.username)
        return record
