"""Logging filters that scrub sensitive content."""

from __future__ import annotations

import logging
import re

_SENSITIVE_PATTERN = re.compile(
    r"(Authorization:\s*Bearer\s+[\w\.-]+"
    r"|\"?(?:access_token|token|reset_token)\"?\s*[:=]\s*\"?[\w\.-]{16,}\"?"
    r"|\"?(?:password|contraseña\w*|new_password)\"?\s*[:=]\s*\"[^\"]*\")",
    re.IGNORECASE,
)


class SensitiveFilter(logging.Filter):
    """Replace sensitive tokens in log messages with a redaction marker."""

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = _SENSITIVE_PATTERN.sub("**REDACTED**", record.msg)
        if isinstance(record.args, tuple):
            record.args = tuple(
                _SENSITIVE_PATTERN.sub("**REDACTED**", arg) if isinstance(arg, str) else arg
                for arg in record.args
            )
        return True


def install_sensitive_filter(*logger_names: str) -> None:
    """Attach a single SensitiveFilter to each named logger."""
    for name in logger_names:
        target = logging.getLogger(name)
        if not any(isinstance(flt, SensitiveFilter) for flt in target.filters):
            target.addFilter(SensitiveFilter())


__all__ = ["SensitiveFilter", "install_sensitive_filter"]
