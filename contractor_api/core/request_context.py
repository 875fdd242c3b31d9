"""
Per-request context passed explicitly through the submission pipeline.

Each inbound request gets a ``RequestContext`` carrying a correlation id and
its start time. Log lines written through ``context.logger`` are prefixed with
the correlation id so every transition of one request can be joined.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional
from uuid import uuid4

REDACTED_FIELDS = ("message",)


class RequestLoggerAdapter(logging.LoggerAdapter):
    """Prefix every message with the request's correlation id"""

    def process(self, msg, kwargs):
        kwargs.setdefault("extra", {}).update(self.extra)
        return f"[{self.extra['request_id']}] {msg}", kwargs


@dataclass
class RequestContext:
    request_id: str = field(default_factory=lambda: uuid4().hex)
    started_at: float = field(default_factory=time.monotonic)

    def logger_for(self, name: str) -> RequestLoggerAdapter:
        return RequestLoggerAdapter(logging.getLogger(name), {"request_id": self.request_id})

    def elapsed_ms(self) -> float:
        return round((time.monotonic() - self.started_at) * 1000, 2)


def context_logger(context: Optional[RequestContext], name: str):
    """Logger for ``name``, correlated with ``context`` when there is one."""
    if context is None:
        return logging.getLogger(name)
    return context.logger_for(name)


def redact_payload(payload: Any) -> Any:
    """
    Copy of a request body that is safe to log.

    Free-text fields are replaced by a length marker so user content never
    reaches the logs. Non-dict bodies are summarised by type only.
    """
    if not isinstance(payload, Mapping):
        return f"<{type(payload).__name__}>"

    redacted: Dict[str, Any] = dict(payload)
    for key in REDACTED_FIELDS:
        if key in redacted and redacted[key] is not None:
            redacted[key] = f"[redacted {len(str(redacted[key]))} chars]"
    return redacted
