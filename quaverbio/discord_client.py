from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any

import requests


logger = logging.getLogger(__name__)

API_URL = "https://discord.com/api/v9/users/@me/profile"
# Sent instead of the python-requests default agent.
USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:129.0) Gecko/20100101 Firefox/129.0"
TIMEOUT_SECONDS = 30


class DiscordApiError(Exception):
    """Base class for failures talking to the Discord API."""


class DiscordRequestError(DiscordApiError):
    pass


class DiscordResponseError(DiscordApiError):
    def __init__(self, status_code: int, body: str):
        super().__init__(f"Discord API returned HTTP {status_code}: {body}")
        self.status_code = status_code
        self.body = body


@dataclass(frozen=True)
class ProfileRequest:
    bio: str | None = None
    accent_color: int | None = None
    pronouns: str | None = None
    profile_effect: int | None = None

    def to_payload(self) -> dict[str, Any]:
        # Unset fields are left out so Discord keeps their current values.
        return {key: value for key, value in asdict(self).items() if value is not None}


class DiscordClient:
    def __init__(
        self,
        token: str,
        *,
        api_url: str = API_URL,
        timeout: float = TIMEOUT_SECONDS,
        session: requests.Session | None = None,
    ):
        self.token = token
        self.api_url = api_url
        self.timeout = timeout
        self.session = session or requests.Session()

    def update_profile(self, request: ProfileRequest) -> None:
        try:
            response = self.session.patch(
                self.api_url,
                headers={"Authorization": self.token, "User-Agent": USER_AGENT},
                json=request.to_payload(),
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise DiscordRequestError(f"Failed to query the Discord API: {exc}") from exc

        if not 200 <= response.status_code < 300:
            raise DiscordResponseError(response.status_code, response.text)
        logger.debug("Discord profile updated. API response: %s", response.text)

    def set_bio(
        self,
        bio: str,
        accent_color: int | None = None,
        pronouns: str | None = None,
        profile_effect: int | None = None,
    ) -> None:
        self.update_profile(
            ProfileRequest(
                bio=bio,
                accent_color=accent_color,
                pronouns=pronouns,
                profile_effect=profile_effect,
            )
        )
