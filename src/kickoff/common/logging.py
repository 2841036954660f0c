"""Shared logging helpers for kickoff."""

from __future__ import annotations

import logging
import re
from typing import Final

SECRET_PATTERN: Final = re.compile(
    r"(Bearer\s+|(?:access|refresh)_token[\"']?\s*[:=]\s*[\"']?|[?&]code=)[^\s\"',&]+",
    re.IGNORECASE,
)


class RedactSecretsFilter(logging.Filter):
    """Replace bearer tokens, OAuth tokens and authorization codes in log lines."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = SECRET_PATTERN.sub(r"\1[redacted]", message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def configure_logging(*, level: int = logging.INFO, force: bool = False) -> None:
    """Initialise the root logger once for the CLI.

    Pass ``force=True`` to reconfigure during tests. Every root handler gets a
    ``RedactSecretsFilter`` and ``httpx`` request logging is lowered to WARNING,
    so neither tokens nor authorization codes reach the output.
    """

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )
    for handler in logging.getLogger().handlers:
        if not any(isinstance(item, RedactSecretsFilter) for item in handler.filters):
            handler.addFilter(RedactSecretsFilter())
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))
