import logging
import json
import datetime as dt
from typing import Dict, Any, Optional, Set

# Attributes present on every LogRecord. Anything else on the record came in via `extra=`.
LOG_RECORD_BUILTIN_ATTRS: Set[str] = {
    "args", "asctime", "created", "exc_info", "exc_text", "filename",
    "funcName", "levelname", "levelno", "lineno", "module", "msecs",
    "message", "msg", "name", "pathname", "process", "processName",
    "relativeCreated", "stack_info", "thread", "threadName", "taskName",
}

class JSONLogFormatter(logging.Formatter):
    """
    Formats records as one JSON object per line.

    `fmt_keys` maps output keys to LogRecord attribute names, e.g.
    {"level": "levelname", "logger": "name"}. Fields passed with `extra=`
    (session_id, round_id, ...) are appended as-is.
    """
    def __init__(self, *, fmt_keys: Optional[Dict[str, str]] = None, datefmt: Optional[str] = None):
        super().__init__(datefmt=datefmt)
        self.fmt_keys = fmt_keys if fmt_keys is not None else {}

    def format(self, record: logging.LogRecord) -> str:
        message = self._prepare_log_dict(record)
        return json.dumps(message, default=str, ensure_ascii=False)

    def _prepare_log_dict(self, record: logging.LogRecord) -> Dict[str, Any]:
        always_fields: Dict[str, Any] = {
            "message": record.getMessage(),
            "timestamp": self._format_timestamp(record),
        }
        if record.exc_info:
            always_fields["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            always_fields["stack_info"] = self.formatStack(record.stack_info)

        message_dict: Dict[str, Any] = {}
        for key, record_attr in self.fmt_keys.items():
            if record_attr in always_fields:
                message_dict[key] = always_fields.pop(record_attr)
            else:
                val = getattr(record, record_attr, None)
                if val is not None:
                    message_dict[key] = val
        message_dict.update(always_fields)

        for key, val in record.__dict__.items():
            if key not in LOG_RECORD_BUILTIN_ATTRS and key not in message_dict:
                message_dict[key] = val

        return message_dict

    def _format_timestamp(self, record: logging.LogRecord) -> str:
        if self.datefmt:
            return self.formatTime(record, self.datefmt)
        return dt.datetime.fromtimestamp(record.created, tz=dt.timezone.utc).isoformat()


class NonErrorFilter(logging.Filter):
    """Lets through DEBUG and INFO only, so stdout and stderr handlers don't duplicate."""
    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno <= logging.INFO
