"""Structured JSON logging for cast sessions.

Every line carries the session id and, for per-attempt events, the cast
number at the top level so a session's output can be grouped by attempt
without parsing the context block.
"""

from __future__ import annotations

import json
import logging
import logging.handlers
from datetime import datetime, timezone
from queue import Full, Queue
from typing import Iterable, override
from uuid import uuid4

LOGGER = logging.getLogger(__name__)

# Record attributes set by the logging module itself, plus the fields the
# formatter lifts out of the context block.
_RESERVED_ATTRIBUTES: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", None, None))
) | {"message", "asctime", "session_id", "cast"}

_QUEUE_SIZE = 1024


class JsonFormatter(logging.Formatter):
    """Render cast session records as one JSON object per line."""

    def __init__(self, *, default_session_id: str | None = None) -> None:
        super().__init__()
        self._default_session_id = default_session_id

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401 - inherited
        payload: dict[str, object] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "session_id": getattr(record, "session_id", None)
            or self._default_session_id,
        }
        cast_number = getattr(record, "cast", None)
        if cast_number is not None:
            payload["cast"] = cast_number
        payload["context"] = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RESERVED_ATTRIBUTES
        }

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        elif record.exc_text:
            payload["exception"] = record.exc_text

        return json.dumps(payload, default=str)


class BoundedQueueHandler(logging.handlers.QueueHandler):
    """Queue handler that drops records when the queue is full.

    A slow stdout must never stall the poll loop, so overflow is discarded.
    """

    @override
    def enqueue(self, record: logging.LogRecord) -> None:
        try:
            self.queue.put_nowait(record)
        except Full:
            self.handleError(record)

    @override
    def handleError(self, record: logging.LogRecord) -> None:
        return


def configure_structured_logging(
    logger: logging.Logger,
    *,
    session_id: str | None = None,
    level: int = logging.INFO,
) -> logging.handlers.QueueListener:
    """Attach JSON output to ``logger`` through a background queue listener.

    Queue handlers left on ``logger`` by an earlier call are replaced, so
    running several sessions in one process does not duplicate lines.

    Args:
        logger: Target logger, usually the ``fogo_cast`` package logger.
        session_id: Identifier stamped on every record; random when omitted.
        level: Logging verbosity level.

    Returns:
        The started queue listener; pass it to :func:`shutdown_listeners`.
    """

    for handler in list(logger.handlers):
        if isinstance(handler, BoundedQueueHandler):
            logger.removeHandler(handler)
    logger.setLevel(level)

    record_queue: Queue[logging.LogRecord] = Queue(maxsize=_QUEUE_SIZE)
    logger.addHandler(BoundedQueueHandler(record_queue))

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(
        JsonFormatter(default_session_id=session_id or str(uuid4()))
    )

    listener = logging.handlers.QueueListener(record_queue, stream_handler)
    listener.start()
    return listener


def shutdown_listeners(listeners: Iterable[logging.handlers.QueueListener]) -> None:
    """Stop all queue listeners, logging rather than raising on failure."""

    for listener in listeners:
        try:
            listener.stop()
        except Exception as exc:  # pragma: no cover - cleanup path
            LOGGER.warning("Failed to stop logging listener", exc_info=exc)
