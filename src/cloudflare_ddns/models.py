"""
Data models for Cloudflare DDNS Updater.

This module defines the payloads exchanged with the DNS provider and the
public IP source, plus the record type enumeration.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, Field


class RecordType(StrEnum):
    """
    DNS record types known to the updater.

    Attributes
    ----------
    A : str
        IPv4 address record.
    """

    A = "A"


class DNSRecord(BaseModel):
    """
    A DNS record as returned by the provider.

    Only the fields the updater relies on are required; everything else the
    provider sends is kept in the model's extra data.

    Attributes
    ----------
    id : str
        Provider-assigned record identifier.
    name : str
        Fully qualified record name.
    type : str
        Record type. Kept as a plain string so unknown types still parse.
    content : str
        Record content (the IP address for "A" records).
    proxied : bool | None
        Whether traffic is routed through the provider's proxy.
    ttl : int | None
        Time to live in seconds (1 means automatic).
    zone_id : str | None
        Identifier of the zone the record belongs to.
    """

    id: str
    name: str
    type: str
    content: str = ""
    proxied: bool | None = None
    ttl: int | None = None
    zone_id: str | None = None

    model_config = {"extra": "allow"}

    def matches(self, name: str, record_type: RecordType) -> bool:
        """Check whether the record has the given name and type."""
        return self.name == name and self.type == record_type.value


class APIMessage(BaseModel):
    """
    Error or informational message in a provider response.

    Attributes
    ----------
    code : int
        Provider error code.
    message : str
        Human-readable message.
    """

    code: int = 0
    message: str = ""


class ResultInfo(BaseModel):
    """
    Pagination information of a list response.

    Attributes
    ----------
    page : int
        Current page number.
    per_page : int
        Number of items per page.
    count : int
        Number of items on the current page.
    total_count : int
        Total number of items.
    total_pages : int
        Total number of pages.
    """

    page: int = 1
    per_page: int = 0
    count: int = 0
    total_count: int = 0
    total_pages: int = 1


class APIResponse(BaseModel):
    """
    Envelope shared by all provider API responses.

    Attributes
    ----------
    success : bool
        Explicit success flag. A missing flag counts as failure.
    errors : list[APIMessage]
        Error objects.
    messages : list[APIMessage | str]
        Informational messages.
    """

    success: bool = False
    errors: list[APIMessage] = Field(default_factory=list)
    messages: list[APIMessage | str] = Field(default_factory=list)

    def error_message(self, default: str = "API request failed") -> str:
        """
        Get the first error message of the response.

        Parameters
        ----------
        default : str, optional
            Message to use when the provider sent no errors.

        Returns
        -------
        str
            The error message.
        """
        if self.errors and self.errors[0].message:
            return self.errors[0].message
        return default


class DNSRecordsResponse(APIResponse):
    """
    Response of the "list DNS records" call.

    Attributes
    ----------
    result : list[DNSRecord]
        DNS record data objects.
    result_info : ResultInfo | None
        Pagination information.
    """

    result: list[DNSRecord] = Field(default_factory=list)
    result_info: ResultInfo | None = None


class DNSRecordResponse(APIResponse):
    """
    Response of the "update DNS record" call.

    Attributes
    ----------
    result : DNSRecord | None
        The updated record.
    """

    result: DNSRecord | None = None


class PublicIPResponse(BaseModel):
    """
    Response of the public IP source.

    Attributes
    ----------
    ip : str
        Current public IPv4 address.
    """

    ip: str = Field(..., min_length=1)
