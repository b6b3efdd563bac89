"""
CLI entry point for Cloudflare DDNS Updater.

This module provides the command-line interface for starting the updater.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import TYPE_CHECKING

from cloudflare_ddns.config import ConfigValidationError, load_config, parse_args
from cloudflare_ddns.logging_config import setup_logging
from cloudflare_ddns.providers.base import ProviderError
from cloudflare_ddns.providers.cloudflare import CloudFlareProvider
from cloudflare_ddns.public_ip import PublicIPSource
from cloudflare_ddns.retry import RetryHandler
from cloudflare_ddns.updater import DNSRecordError, DNSUpdater

if TYPE_CHECKING:
    from cloudflare_ddns.config import Config


logger = logging.getLogger(__name__)


def build_updater(config: Config) -> DNSUpdater:
    """
    Wire the updater and its collaborators from configuration.

    Parameters
    ----------
    config : Config
        Application configuration.

    Returns
    -------
    DNSUpdater
        The updater, not yet initialized.
    """
    provider = CloudFlareProvider(
        api_token=config.cloudflare.api_token,
        zone_id=config.cloudflare.zone_id,
        domain=config.cloudflare.domain,
        proxied=config.cloudflare.proxied,
        timeout=config.updater.http_timeout,
    )
    ip_source = PublicIPSource(
        config.updater.ip_source_url,
        timeout=config.updater.http_timeout,
    )
    retry_handler = RetryHandler(
        config.updater.max_retries,
        config.updater.retry_delay,
    )
    return DNSUpdater(
        provider=provider,
        ip_source=ip_source,
        retry_handler=retry_handler,
        domain=config.cloudflare.domain,
        update_interval=config.updater.update_interval,
    )


async def run(updater: DNSUpdater) -> None:
    """
    Initialize the updater and run it forever.

    Exit with status 1 if the DNS records cannot be resolved.

    Parameters
    ----------
    updater : DNSUpdater
        The updater to run.
    """
    try:
        await updater.initialize()
    except (DNSRecordError, ProviderError) as e:
        logger.critical("Initialization failed: %s", e)
        sys.exit(1)

    await updater.run_forever()


def main() -> None:
    """
    Start the Cloudflare DDNS Updater.

    Parse command-line arguments, load configuration, and run the update loop.
    """
    args = parse_args()
    try:
        config = load_config(args)
    except ConfigValidationError as e:
        print(e, file=sys.stderr)  # noqa: T201
        sys.exit(1)

    setup_logging(config.logging, secrets=[config.cloudflare.api_token])
    logger.info(
        "Starting updater for %s (zone %s, proxied=%s)",
        config.cloudflare.domain,
        config.cloudflare.zone_id,
        config.cloudflare.proxied,
    )

    asyncio.run(run(build_updater(config)))


if __name__ == "__main__":
    main()
