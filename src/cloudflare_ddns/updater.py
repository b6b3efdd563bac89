"""
Update loop for Cloudflare DDNS Updater.

This module resolves the DNS records to keep up to date, then periodically
compares the host's public IP address with the last address applied and
updates every record when it changes.
"""

from __future__ import annotations

import asyncio
import logging
from enum import StrEnum
from typing import TYPE_CHECKING

from cloudflare_ddns.models import RecordType

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from cloudflare_ddns.providers.base import BaseDNSProvider
    from cloudflare_ddns.public_ip import PublicIPSource
    from cloudflare_ddns.retry import RetryHandler


logger = logging.getLogger(__name__)


class DNSRecordError(Exception):
    """Exception raised when the DNS records to update cannot be resolved."""

    def __init__(self, message: str) -> None:
        super().__init__(f"DNS Record Error: {message}")


class UpdaterState(StrEnum):
    """
    Lifecycle states of the updater.

    Attributes
    ----------
    UNINITIALIZED : str
        Records have not been resolved yet.
    INITIALIZING : str
        Records are being resolved.
    RUNNING : str
        Records are resolved; update cycles may run.
    """

    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    RUNNING = "running"


class DNSUpdater:
    """
    Keep the "A" records of a domain pointed at the current public IP.

    Attributes
    ----------
    domain : str
        Fully qualified name of the records to update.
    update_interval : float
        Seconds to wait after a cycle completes before starting the next.
    state : UpdaterState
        Current lifecycle state.
    record_ids : list[str]
        Identifiers of the tracked records.
    current_ip : str | None
        Last address applied to every tracked record, None if unknown.
    """

    def __init__(
        self,
        provider: BaseDNSProvider,
        ip_source: PublicIPSource,
        retry_handler: RetryHandler,
        domain: str,
        update_interval: float,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ) -> None:
        self.provider = provider
        self.ip_source = ip_source
        self.retry_handler = retry_handler
        self.domain = domain
        self.update_interval = update_interval
        self._sleep = sleep

        self.state = UpdaterState.UNINITIALIZED
        self.record_ids: list[str] = []
        self.current_ip: str | None = None

    async def initialize(self) -> None:
        """
        Resolve and store the IDs of the records to update.

        Raises
        ------
        DNSRecordError
            If no "A" record matches the domain after all retries.
        ProviderError
            If the provider request still fails after all retries.
        """
        self.state = UpdaterState.INITIALIZING
        try:
            record_ids = await self.retry_handler.execute(self._get_record_ids)
        except Exception:
            self.state = UpdaterState.UNINITIALIZED
            raise

        self.record_ids = record_ids
        self.state = UpdaterState.RUNNING
        logger.info(
            "DNS record ID retrieved successfully: %s (%d record(s))",
            ", ".join(record_ids),
            len(record_ids),
        )

    async def _get_record_ids(self) -> list[str]:
        records = await self.provider.list_records()
        record_ids = [r.id for r in records if r.matches(self.domain, RecordType.A)]
        if not record_ids:
            msg = f"DNS record not found for {self.domain}"
            raise DNSRecordError(msg)
        return record_ids

    async def check_and_update(self) -> None:
        """
        Update all tracked records if the public IP changed.

        The records are updated together: if any update fails, the whole
        batch is retried, and the stored IP only advances once every record
        has been updated.

        Raises
        ------
        RuntimeError
            If called before `initialize` succeeded.
        Exception
            The last error of the IP lookup or of the record updates once
            retries are exhausted.
        """
        if self.state is not UpdaterState.RUNNING:
            msg = "Updater is not initialized"
            raise RuntimeError(msg)

        new_ip = await self.retry_handler.execute(self.ip_source.get_ip)

        if new_ip == self.current_ip:
            logger.info("IP unchanged")
            return

        async def update_all() -> None:
            for record_id in self.record_ids:
                await self.provider.update_record(record_id, new_ip)

        await self.retry_handler.execute(update_all)

        logger.info("IP updated from %s → %s", self.current_ip or "undefined", new_ip)
        self.current_ip = new_ip

    async def run_cycle(self) -> bool:
        """
        Run one update cycle, logging instead of raising on failure.

        Returns
        -------
        bool
            True if the cycle succeeded.
        """
        try:
            await self.check_and_update()
        except Exception as e:
            logger.error("Update failed: %s", e)  # noqa: TRY400
            return False
        return True

    async def run_forever(self) -> None:
        """Run update cycles forever, waiting `update_interval` after each."""
        while True:
            await self.run_cycle()
            await self._sleep(self.update_interval)

    async def run(self) -> None:
        """Initialize, then run update cycles forever."""
        await self.initialize()
        await self.run_forever()
