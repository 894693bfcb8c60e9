"""
Logging for the TrainingPulse service and client.

Lines are written to stdout as ``key=value`` pairs. Records can carry the ids
of the course, phase, user or bulk operation they concern; those are printed
right after the message in a fixed order so log lines for one course line up.
"""

import logging
import sys
from typing import Any

# Printed in this order when present on a record
CONTEXT_FIELDS = ("course_id", "subtask_id", "user_id", "operation_id")


class KeyValueFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        fields: dict[str, Any] = {
            "ts": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                fields[name] = value
        fields.update(getattr(record, "details", None) or {})

        if record.exc_info:
            # Last line of the traceback only: "ExcType: message"
            fields["exc"] = self.formatException(record.exc_info).splitlines()[-1]

        return " ".join(f"{k}={_quote(v)}" for k, v in fields.items())


def _quote(value: Any) -> str:
    text = str(value)
    return f'"{text}"' if " " in text and not text.startswith('"') else text


def _level() -> int:
    try:
        from trainingpulse.core.config import get_settings

        return logging.DEBUG if get_settings().TRAININGPULSE_ENV == "dev" else logging.INFO
    except Exception:
        # Client-only use runs without the Supabase settings
        return logging.INFO


def get_logger(name: str) -> logging.Logger:
    """Logger for ``name`` with the key=value stdout handler attached once."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(KeyValueFormatter())
        logger.addHandler(handler)
        logger.setLevel(_level())
    return logger


def log_with_context(logger: logging.Logger, level: int, msg: str, **fields: Any) -> None:
    """
    Log ``msg`` with id fields and free-form details.

    Known ids (``course_id``, ``subtask_id``, ``user_id``, ``operation_id``)
    become record attributes; anything else is printed after them.
    """
    extra: dict[str, Any] = {}
    for name in CONTEXT_FIELDS:
        value = fields.pop(name, None)
        if value is not None:
            extra[name] = str(value)
    extra["details"] = fields
    logger.log(level, msg, extra=extra)
