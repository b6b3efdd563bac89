"""
Public IP discovery for Cloudflare DDNS Updater.

This module queries an ipify-compatible endpoint, which answers an
unauthenticated GET with a JSON body of the form ``{"ip": "203.0.113.7"}``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from cloudflare_ddns.models import PublicIPResponse

if TYPE_CHECKING:
    from typing import Final


IPIFY_URL: Final[str] = "https://api.ipify.org?format=json"

# HTTP timeout in seconds
HTTP_TIMEOUT: Final[float] = 30.0


logger = logging.getLogger(__name__)


class PublicIPError(Exception):
    """
    Exception raised when the public IP address cannot be determined.

    Attributes
    ----------
    status_code : int | None
        HTTP status code, or None if no response was received.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        """
        Initialize PublicIPError.

        Parameters
        ----------
        message : str
            Human-readable error message.
        status_code : int | None, optional
            HTTP status code of the failed response.
        """
        self.status_code = status_code
        super().__init__(message)


class PublicIPSource:
    """Fetch the host's public IP address from an HTTP endpoint."""

    def __init__(
        self,
        url: str = IPIFY_URL,
        *,
        timeout: float = HTTP_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.url = url
        self._timeout = timeout
        self._transport = transport

    async def get_ip(self) -> str:
        """
        Get the current public IP address.

        Returns
        -------
        str
            The address exactly as reported by the endpoint.

        Raises
        ------
        PublicIPError
            If the request fails or the response has no address.
        """
        async with httpx.AsyncClient(
            timeout=self._timeout,
            transport=self._transport,
        ) as client:
            try:
                response = await client.get(self.url)
            except httpx.RequestError as e:
                msg = f"Request error: {e}"
                raise PublicIPError(msg) from e

        logger.debug("[public_ip] GET %s -> %d", self.url, response.status_code)

        if not response.is_success:
            msg = f"Public IP lookup failed: {response.reason_phrase}"
            raise PublicIPError(msg, response.status_code)

        try:
            data = PublicIPResponse.model_validate_json(response.content)
        except ValidationError as e:
            msg = f"Invalid public IP response: {response.text!r}"
            raise PublicIPError(msg, response.status_code) from e

        return data.ip
