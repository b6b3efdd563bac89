"""
CloudFlare DNS provider implementation.

This module implements the CloudFlare DNS API v4 calls the updater needs.
Only API Token authentication is supported (not Global API Key).
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, TypeVar

import httpx
from pydantic import ValidationError

from cloudflare_ddns.models import (
    APIResponse,
    DNSRecordResponse,
    DNSRecordsResponse,
    RecordType,
)
from cloudflare_ddns.providers.base import BaseDNSProvider, ProviderError

if TYPE_CHECKING:
    from typing import Any, Final

    from cloudflare_ddns.models import DNSRecord


# CloudFlare API base URL
CF_API_BASE: Final[str] = "https://api.cloudflare.com/client/v4"

# HTTP timeout in seconds
HTTP_TIMEOUT: Final[float] = 30.0

# Largest page size accepted by the "list DNS records" endpoint
PER_PAGE: Final[int] = 100


logger = logging.getLogger(__name__)

ResponseT = TypeVar("ResponseT", bound=APIResponse)


class CloudFlareProvider(BaseDNSProvider):
    """
    CloudFlare DNS provider.

    Uses CloudFlare API v4 with API Token authentication. The token needs
    the "DNS:Edit" permission on the zone.
    """

    def __init__(
        self,
        api_token: str,
        zone_id: str,
        domain: str,
        *,
        proxied: bool = False,
        timeout: float = HTTP_TIMEOUT,
        base_url: str = CF_API_BASE,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize a CloudFlareProvider.

        Parameters
        ----------
        api_token : str
            CloudFlare API Token.
        zone_id : str
            Identifier of the zone holding the records.
        domain : str
            Fully qualified name of the records to manage.
        proxied : bool, optional
            Whether updated records are proxied through CloudFlare.
        timeout : float, optional
            HTTP timeout in seconds.
        base_url : str, optional
            API base URL.
        transport : httpx.AsyncBaseTransport | None, optional
            Custom transport for the HTTP client.
        """
        self.zone_id = zone_id
        self.domain = domain
        self.proxied = proxied
        self._timeout = timeout
        self._base_url = base_url.rstrip("/")
        self._transport = transport
        self._headers = {
            "Authorization": f"Bearer {api_token}",
            "Content-Type": "application/json",
        }

    @property
    def records_url(self) -> str:
        """Get the URL of the zone's DNS records collection."""
        return f"{self._base_url}/zones/{self.zone_id}/dns_records"

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            headers=self._headers,
            timeout=self._timeout,
            transport=self._transport,
        )

    async def list_records(self) -> list[DNSRecord]:
        """
        List the "A" records named after the target domain.

        Returns
        -------
        list[DNSRecord]
            Records returned by CloudFlare.

        Raises
        ------
        ProviderError
            If the request fails.
        """
        params: dict[str, str | int] = {
            "name": self.domain,
            "type": RecordType.A.value,
            "per_page": PER_PAGE,
        }

        async with self._client() as client:
            response = await self._send(client, "GET", self.records_url, params=params)

        data = self._parse(response, DNSRecordsResponse)
        info = data.result_info
        if info is not None and info.total_pages > 1:
            logger.warning(
                "[cloudflare] %d records match %s across %d pages; only the first %d are updated",
                info.total_count,
                self.domain,
                info.total_pages,
                len(data.result),
            )
        return data.result

    async def update_record(self, record_id: str, content: str) -> DNSRecord:
        """
        Overwrite a DNS record with new content.

        Parameters
        ----------
        record_id : str
            The record ID.
        content : str
            The new IP address.

        Returns
        -------
        DNSRecord
            The updated record.

        Raises
        ------
        ProviderError
            If the request fails or CloudFlare returns no record.
        """
        url = f"{self.records_url}/{record_id}"
        payload: dict[str, str | bool] = {
            "type": RecordType.A.value,
            "name": self.domain,
            "content": content,
            "proxied": self.proxied,
        }

        async with self._client() as client:
            response = await self._send(client, "PUT", url, json=payload)

        data = self._parse(response, DNSRecordResponse)
        if data.result is None:
            msg = f"No record returned for {record_id}"
            raise ProviderError(msg, response.status_code)
        return data.result

    async def _send(
        self,
        client: httpx.AsyncClient,
        method: str,
        url: str,
        **kwargs: Any,
    ) -> httpx.Response:
        """
        Send a request to CloudFlare.

        Parameters
        ----------
        client : httpx.AsyncClient
            HTTP client.
        method : str
            HTTP method.
        url : str
            Request URL.
        **kwargs : Any
            Extra arguments for `httpx.AsyncClient.request`.

        Returns
        -------
        httpx.Response
            The response.

        Raises
        ------
        ProviderError
            If the request could not be sent.
        """
        try:
            response = await client.request(method, url, **kwargs)
        except httpx.RequestError as e:
            logger.debug("[cloudflare] %s %s failed: '%s'", method, url, e)
            msg = f"Request error: {e}"
            raise ProviderError(msg) from e

        logger.debug("[cloudflare] %s %s -> %d", method, url, response.status_code)
        logger.debug("[cloudflare] Response: %s", response.text)
        return response

    @staticmethod
    def _parse(
        response: httpx.Response,
        model: type[ResponseT],
    ) -> ResponseT:
        """
        Validate a CloudFlare response and parse its JSON payload.

        Parameters
        ----------
        response : httpx.Response
            The response.
        model : type[ResponseT]
            Model to parse the payload into.

        Returns
        -------
        ResponseT
            The parsed payload.

        Raises
        ------
        ProviderError
            If the status is not 2xx, the success flag is not set, or the
            payload does not match the model.
        """
        if not response.is_success:
            raise ProviderError(response.reason_phrase, response.status_code)

        # The success flag is checked before the result, which is null on failure
        envelope = _validate(response, APIResponse)
        if not envelope.success:
            raise ProviderError(envelope.error_message(), response.status_code)
        return _validate(response, model)


def _validate(response: httpx.Response, model: type[ResponseT]) -> ResponseT:
    try:
        return model.model_validate_json(response.content)
    except ValidationError as e:
        msg = f"Invalid response payload: {e.error_count()} validation error(s)"
        raise ProviderError(msg, response.status_code) from e
