"""
Bearer token verification against an external identity provider
"""
from abc import ABC, abstractmethod
from typing import Optional

import httpx

from pdfnotebook.core.errors import AuthenticationError, ConfigurationError
from pdfnotebook.logger import logger


class TokenVerifier(ABC):
    @abstractmethod
    async def verify(self, token: str) -> str:
        """Return the user id the token belongs to; raises AuthenticationError"""


class IdentityProviderVerifier(TokenVerifier):
    """
    Resolves a token by calling the provider's user endpoint

    The provider is expected to answer `GET {AUTH_URL}/auth/v1/user` with a
    JSON body carrying the user's `id` when the token is valid.
    """

    def __init__(
        self,
        auth_url: str,
        api_key: str = "",
        timeout: float = 5.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.auth_url = auth_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._client = client

    async def verify(self, token: str) -> str:
        if not self.auth_url:
            raise ConfigurationError("AUTH_URL is not configured")

        headers = {"Authorization": f"Bearer {token}"}
        if self.api_key:
            headers["apikey"] = self.api_key

        try:
            if self._client is not None:
                response = await self._client.get(f"{self.auth_url}/auth/v1/user", headers=headers)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.get(f"{self.auth_url}/auth/v1/user", headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"Identity provider unreachable: {e}")
            raise AuthenticationError("Could not verify token") from e

        if response.status_code != 200:
            logger.info(f"Token rejected by identity provider (status={response.status_code})")
            raise AuthenticationError("Invalid or expired token")

        try:
            user_id = response.json().get("id")
        except ValueError as e:
            raise AuthenticationError("Malformed identity provider response") from e
        if not user_id:
            raise AuthenticationError("Invalid or expired token")
        return str(user_id)


def parse_bearer(authorization: Optional[str]) -> str:
    """Extract the token from an Authorization header value"""
    if not authorization:
        raise AuthenticationError("Authentication required")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationError("Authentication required")
    return token.strip()
