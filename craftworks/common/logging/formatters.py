"""JSON log formatting and the structured adapter used by every module."""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, MutableMapping, Optional, Tuple

# Record attributes copied into the JSON entry when set
_CONTEXT_FIELDS = ("correlation_id", "session_id")

# Logger name prefixes dropped from the component name
_PACKAGE_PREFIXES = ("craftworks.core.", "craftworks.")


class JSONFormatter(logging.Formatter):
    """
    One JSON object per record.

    Output keys: timestamp, level, component, logger, message, then the
    correlation context, "data" for structured data and "exception" when
    exc_info is set. Static extra_fields are appended last.
    """

    def __init__(self, include_path: bool = False, extra_fields: Optional[Dict[str, Any]] = None):
        super().__init__()
        self.include_path = include_path
        self.extra_fields = extra_fields or {}

    @staticmethod
    def _extract_component(logger_name: str) -> str:
        """
        Short component name of a logger.

        Examples:
            craftworks.core.mapping.persister -> mapping.persister
            craftworks.models.world -> models.world
            __main__ -> main
        """
        if logger_name == "__main__":
            return "main"
        for prefix in _PACKAGE_PREFIXES:
            if logger_name.startswith(prefix):
                return logger_name[len(prefix):]
        return logger_name

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "component": self._extract_component(record.name),
            "logger": record.name,
            "message": record.getMessage().strip(),
        }
        if self.include_path:
            entry["path"] = f"{record.pathname}:{record.lineno}"

        for name in _CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value:
                entry[name] = value

        data = getattr(record, "structured_data", None)
        if data:
            entry["data"] = data

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc, _ = record.exc_info
            entry["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc),
                "traceback": self.formatException(record.exc_info),
            }

        entry.update(self.extra_fields)
        return json.dumps(entry, ensure_ascii=False, default=str)


class StructuredLogAdapter(logging.LoggerAdapter):
    """
    Adapter accepting a data= keyword on every logging call.

    Bound context is merged into the data of each record:

        logger = get_logger(__name__)
        logger.info("Entity written", data={"entity": "Zone", "id": 42})

        log = logger.bind(command="show")
        log.debug("Command finished")   # data={"command": "show"}
    """

    def __init__(self, logger: logging.Logger, context: Optional[Dict[str, Any]] = None):
        super().__init__(logger, {})
        self.context: Dict[str, Any] = dict(context or {})

    def bind(self, **context: Any) -> "StructuredLogAdapter":
        """New adapter on the same logger with extra bound context."""
        return StructuredLogAdapter(self.logger, {**self.context, **context})

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        data = kwargs.pop("data", None)
        extra = dict(kwargs.get("extra") or {})

        if self.context or data:
            extra["structured_data"] = {**self.context, **(data or {})}

        kwargs["extra"] = extra
        return msg, kwargs
