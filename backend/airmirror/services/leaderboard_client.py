"""Leaderboard API client backing the customer listing proxy."""

import logging
from typing import Any

import httpx

from airmirror.config import get_settings
from airmirror.errors import AirMirrorError

logger = logging.getLogger(__name__)
settings = get_settings()


class LeaderboardError(AirMirrorError):
    """
    Leaderboard request failed.

    `body` is the JSON returned to the proxy caller as-is.
    """

    def __init__(self, message: str, *, status_code: int, body: dict[str, Any] | None = None):
        super().__init__(message, code="leaderboard_error", status_code=status_code)
        self.body = body if body is not None else {"error": message}

    def to_dict(self) -> dict:
        return self.body


class LeaderboardClient:
    """
    Client for the leaderboard API.

    Authenticates with form-encoded credentials for a bearer token, then
    forwards list requests with that token.
    """

    def __init__(
        self,
        base_url: str = settings.leaderboard_api_base_url,
        email: str | None = settings.leaderboard_api_email,
        password: str | None = settings.leaderboard_api_password,
        timeout: float = 30.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.email = email
        self.password = password
        self.timeout = timeout

    async def authenticate(self, client: httpx.AsyncClient) -> str:
        """Exchange credentials for an auth token."""
        if not self.email or not self.password:
            raise LeaderboardError("Leaderboard API credentials not configured", status_code=500)

        response = await client.post(
            f"{self.base_url}/auth/authenticate",
            data={"email": self.email, "password": self.password},
        )
        if not response.is_success:
            logger.error(f"Leaderboard authentication failed: {response.status_code} {response.text}")
            raise LeaderboardError("Failed to authenticate with leaderboard API", status_code=401)

        try:
            data = response.json()
        except ValueError as e:
            logger.error(f"Leaderboard authentication returned a non-JSON body: {e}")
            raise LeaderboardError("Failed to authenticate with leaderboard API", status_code=401) from e
        if not isinstance(data, dict):
            raise LeaderboardError("Failed to authenticate with leaderboard API", status_code=401)

        token = ((data.get("data") or {}).get("user") or {}).get("auth_token")
        if not data.get("success") or not token:
            logger.error("Leaderboard authentication returned no auth token")
            raise LeaderboardError("Failed to authenticate with leaderboard API", status_code=401)

        return token

    async def list_customers(
        self,
        page: int = 1,
        items: int = 6,
        approved: bool = True,
        role: str = "Customer",
    ) -> dict[str, Any]:
        """
        Fetch one page of customers.

        Returns:
            The leaderboard response body, unchanged

        Raises:
            LeaderboardError: authentication failed, the API answered with an
                error status or `success: false`, or the request never completed
        """
        params = {
            "items": str(items),
            "page": str(page),
            "approved": "true" if approved else "false",
            "role": role,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                token = await self.authenticate(client)
                response = await client.get(
                    f"{self.base_url}/customers",
                    params=params,
                    headers={
                        "Authorization": f"Bearer {token}",
                        "Content-Type": "application/json",
                    },
                )
        except httpx.RequestError as e:
            logger.error(f"Error fetching customers: {e}")
            raise LeaderboardError(str(e) or "Internal server error", status_code=500) from e

        if not response.is_success:
            logger.error(f"Failed to fetch customers: {response.status_code} {response.reason_phrase}")
            raise LeaderboardError(
                "Failed to fetch customers",
                status_code=response.status_code,
                body={
                    "error": f"Failed to fetch customers: {response.reason_phrase}",
                    "details": response.text,
                },
            )

        try:
            data = response.json()
        except ValueError as e:
            logger.error(f"Customers API returned a non-JSON body: {e}")
            raise LeaderboardError("Invalid response from leaderboard API", status_code=500) from e
        if not isinstance(data, dict):
            raise LeaderboardError("Invalid response from leaderboard API", status_code=500)

        logger.info(f"Customers API response: success={data.get('success')}")

        if not data.get("success"):
            raise LeaderboardError(data.get("message") or "Failed to fetch customers", status_code=400)

        return data
