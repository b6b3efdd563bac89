"""
Logging configuration for Cloudflare DDNS Updater.

Log records go to the console and, optionally, to a file. Every handler
carries a filter that replaces known secret values (the API token) before
the record is written.
"""

from __future__ import annotations

import logging
import logging.handlers
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable
    from typing import Any, Final

    from cloudflare_ddns.config import LoggingConfig


LOG_FORMAT: Final[str] = "%(asctime)s %(levelname)-5s [%(name)s] %(message)s"
DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"
MASK: Final[str] = "******"


class SensitiveFilter(logging.Filter):
    """
    A logging filter that hides secret values.

    Each occurrence of a secret in the message, the formatting arguments or
    the exception text of a record is replaced with a fixed mask.

    Parameters
    ----------
    secrets : Iterable[str], optional
        Exact values to hide. Empty values are ignored.
    """

    def __init__(self, secrets: Iterable[str] = ()) -> None:
        super().__init__()
        # Longest first, so a secret containing another is masked whole
        self.secrets = sorted({s for s in secrets if s}, key=len, reverse=True)

    def mask(self, text: str) -> str:
        """Replace every secret in ``text`` with the mask."""
        for secret in self.secrets:
            text = text.replace(secret, MASK)
        return text

    def _mask_arg(self, arg: Any) -> Any:
        # Values without a secret keep their type so %d and %r still work
        rendered = str(arg)
        masked = self.mask(rendered)
        return arg if masked == rendered else masked

    def filter(self, record: logging.LogRecord) -> bool:
        """
        Mask secrets in a log record.

        Parameters
        ----------
        record : logging.LogRecord
            The log record to process.

        Returns
        -------
        bool
            Always True; records are never dropped.
        """
        if not self.secrets:
            return True

        record.msg = self._mask_arg(record.msg)

        if isinstance(record.args, dict):
            record.args = {k: self._mask_arg(v) for k, v in record.args.items()}
        elif isinstance(record.args, tuple):
            record.args = tuple(self._mask_arg(arg) for arg in record.args)

        if record.exc_info and not record.exc_text:
            # Formatter.format() reuses exc_text when it is already set
            record.exc_text = logging.Formatter().formatException(record.exc_info)
        if record.exc_text:
            record.exc_text = self.mask(record.exc_text)

        return True


def _configure_handler(handler: logging.Handler, secrets: Iterable[str]) -> None:
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    handler.addFilter(SensitiveFilter(secrets))


def setup_logging(config: LoggingConfig, secrets: Iterable[str] = ()) -> None:
    """
    Set up the package logger.

    Parameters
    ----------
    config : LoggingConfig
        Logging configuration.
    secrets : Iterable[str], optional
        Values that must never appear in log output, typically the API token.
    """
    secrets = tuple(secrets)
    logger = logging.getLogger("cloudflare_ddns")
    logger.setLevel(getattr(logging, config.level.upper(), logging.INFO))
    logger.handlers.clear()

    console_handler = logging.StreamHandler()
    _configure_handler(console_handler, secrets)
    logger.addHandler(console_handler)

    if config.file_enabled:
        log_path = config.file_path_as_path
        try:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.handlers.WatchedFileHandler(
                str(log_path),
                encoding="utf-8",
            )
        except OSError as e:
            logger.critical("Failed to enable file logging: %s", e)
            sys.exit(1)
        _configure_handler(file_handler, secrets)
        logger.addHandler(file_handler)
        logger.info('File logging enabled: "%s".', log_path)

    logger.propagate = False
