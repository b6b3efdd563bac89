"""
Base class for DNS providers.

This module defines the contract the updater relies on: listing the DNS
records of the target domain and updating the content of a single record.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from cloudflare_ddns.models import DNSRecord


class ProviderError(Exception):
    """
    Exception raised when a provider request fails.

    Raised for transport errors, non-2xx HTTP responses, responses whose
    success flag is false, and payloads that cannot be parsed.

    Attributes
    ----------
    status_code : int | None
        HTTP status code, or None if no response was received.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        """
        Initialize ProviderError.

        Parameters
        ----------
        message : str
            Human-readable error message.
        status_code : int | None, optional
            HTTP status code of the failed response.
        """
        self.status_code = status_code
        super().__init__(f"HTTP Error: {message}")


class BaseDNSProvider(ABC):
    """
    Abstract base class for DNS providers.

    A provider is bound to one zone and one target domain at construction.
    """

    @abstractmethod
    async def list_records(self) -> list[DNSRecord]:
        """
        List the DNS records of the target domain.

        Returns
        -------
        list[DNSRecord]
            Records returned by the provider. Callers filter by name and type.

        Raises
        ------
        ProviderError
            If the request fails.
        """
        ...

    @abstractmethod
    async def update_record(self, record_id: str, content: str) -> DNSRecord:
        """
        Set the content of a DNS record.

        Parameters
        ----------
        record_id : str
            Provider-assigned record identifier.
        content : str
            The new record content.

        Returns
        -------
        DNSRecord
            The updated record.

        Raises
        ------
        ProviderError
            If the request fails.
        """
        ...
