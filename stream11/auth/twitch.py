"""
Twitch OAuth client.

Implements the authorization-code flow against Twitch: building the
consent URL, exchanging the returned code for an access token, and
fetching the viewer's profile from the Helix API.
"""

from typing import Any
from urllib.parse import urlencode

import httpx
import structlog

from stream11.config.settings import TwitchSettings
from stream11.models.user import TwitchProfile
from stream11.services.errors import (
    OAuthExchangeFailedError,
    OAuthProfileFetchFailedError,
    UpstreamUnavailableError,
)

logger = structlog.get_logger(__name__)


class TwitchOAuthClient:
    """
    Client for the Twitch identity endpoints.

    The HTTP client is injected so the application can share one connection
    pool and tests can swap in ``httpx.MockTransport``.

    Usage:
        async with httpx.AsyncClient(timeout=10) as http:
            twitch = TwitchOAuthClient(settings.twitch, redirect_uri, http)
            token = await twitch.exchange_code(code)
            profile = await twitch.fetch_profile(token)
    """

    def __init__(
        self,
        settings: TwitchSettings,
        redirect_uri: str,
        http_client: httpx.AsyncClient,
    ) -> None:
        self.settings = settings
        self.redirect_uri = redirect_uri
        self._http = http_client

    def authorization_url(self, state: str | None = None) -> str:
        """
        Build the Twitch consent URL the browser is sent to.

        Args:
            state: Optional opaque value echoed back on the callback

        Returns:
            Absolute authorization URL
        """
        params = {
            "client_id": self.settings.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": self.settings.scope,
        }
        if self.settings.force_verify:
            params["force_verify"] = "true"
        if state:
            params["state"] = state
        return f"{self.settings.authorize_url}?{urlencode(params)}"

    async def exchange_code(self, code: str) -> str:
        """
        Exchange an authorization code for an access token.

        Args:
            code: Code received on the OAuth callback

        Returns:
            Twitch access token

        Raises:
            OAuthExchangeFailedError: If Twitch rejects the code
            UpstreamUnavailableError: If Twitch cannot be reached in time
        """
        response = await self._send(
            "POST",
            self.settings.token_url,
            data={
                "client_id": self.settings.client_id,
                "client_secret": self.settings.client_secret.get_secret_value(),
                "code": code,
                "grant_type": "authorization_code",
                "redirect_uri": self.redirect_uri,
            },
        )

        if response.is_error:
            logger.warning("Twitch token exchange rejected", status_code=response.status_code)
            raise OAuthExchangeFailedError("Twitch rejected the authorization code")

        access_token = self._json(response).get("access_token")
        if not access_token or not isinstance(access_token, str):
            logger.warning("Twitch token response without access_token")
            raise OAuthExchangeFailedError("Twitch returned no access token")
        return access_token

    async def fetch_profile(self, access_token: str) -> TwitchProfile:
        """
        Fetch the profile of the viewer who owns ``access_token``.

        Raises:
            OAuthProfileFetchFailedError: If the profile is missing or invalid
            UpstreamUnavailableError: If Twitch cannot be reached in time
        """
        response = await self._send(
            "GET",
            self.settings.users_url,
            headers={
                "Authorization": f"Bearer {access_token}",
                "Client-Id": self.settings.client_id,
            },
        )

        if response.is_error:
            logger.warning("Twitch profile request rejected", status_code=response.status_code)
            raise OAuthProfileFetchFailedError("Twitch rejected the profile request")

        data = self._json(response).get("data")
        if not isinstance(data, list) or not data:
            raise OAuthProfileFetchFailedError("Twitch returned no profile")

        try:
            return TwitchProfile.model_validate(data[0])
        except ValueError as e:
            raise OAuthProfileFetchFailedError("Twitch returned an invalid profile") from e

    async def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            return await self._http.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            logger.error("Twitch request timed out", url=url)
            raise UpstreamUnavailableError("Twitch did not respond in time") from e
        except httpx.HTTPError as e:
            logger.error("Twitch request failed", url=url, error=str(e))
            raise UpstreamUnavailableError("Twitch could not be reached") from e

    @staticmethod
    def _json(response: httpx.Response) -> dict[str, Any]:
        try:
            body = response.json()
        except ValueError:
            return {}
        return body if isinstance(body, dict) else {}
