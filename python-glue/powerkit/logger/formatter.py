"""JSON formatter producing one structured record per log call"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

# Attribute on the LogRecord carrying the merged context fields
FIELDS_ATTR = "powerkit_fields"
# Overrides the funcName:lineno location when set
LOCATION_ATTR = "powerkit_location"


class LambdaJsonFormatter(logging.Formatter):
    """Render a LogRecord as a single JSON object.

    Key order is fixed: the standard keys first, then the context fields the
    Logger attached to the record, then exception details. Keys whose value is
    ``None`` are dropped.
    """

    def __init__(self, json_indent: Optional[int] = None):
        super().__init__()
        self.json_indent = json_indent

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "level": record.levelname,
            "location": getattr(record, LOCATION_ATTR, None) or f"{record.funcName}:{record.lineno}",
            "message": self._extract_message(record),
            "timestamp": self.formatTime(record),
        }

        log_data.update(getattr(record, FIELDS_ATTR, {}))

        if record.exc_info and record.exc_info[0] is not None:
            log_data["exception"] = self.formatException(record.exc_info)
            log_data["exception_name"] = record.exc_info[0].__name__

        log_data = {key: value for key, value in log_data.items() if value is not None}

        return json.dumps(log_data, default=str, indent=self.json_indent)

    def formatTime(self, record: logging.LogRecord, datefmt: Optional[str] = None) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        return created.isoformat(timespec="milliseconds")

    @staticmethod
    def _extract_message(record: logging.LogRecord) -> Any:
        # dicts and lists are embedded as JSON rather than their repr
        if isinstance(record.msg, (dict, list)) and not record.args:
            return record.msg
        return record.getMessage()
