import json
import logging
from datetime import datetime, timezone
from logging import LogRecord


class JsonFormatter(logging.Formatter):
    """한 줄 JSON 포매터. extra 로 전달된 metric, metric_level 도 함께 기록한다."""

    EXTRA_FIELDS = ("metric", "metric_level")

    def format(self, record: LogRecord) -> str:
        log_obj = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        for field in self.EXTRA_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_obj[field] = str(value)

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_obj, ensure_ascii=False)
