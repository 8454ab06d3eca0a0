"""Logging setup.

Every record carries the lookup it was emitted for (`key`) and the pipeline stage (`stage`),
taken from context variables bound by `lookup_context` and `set_stage`. Structured fields passed
through `extra={...}` are appended to the rendered message as `name=value` pairs.
"""

from __future__ import annotations

import contextlib
import contextvars
import logging
from typing import Iterator

from rich.console import Console
from rich.logging import RichHandler

_key_var: contextvars.ContextVar[str] = contextvars.ContextVar("nutrilens_lookup_key", default="-")
_stage_var: contextvars.ContextVar[str] = contextvars.ContextVar("nutrilens_stage", default="-")

# Attributes every LogRecord has; anything else arrived through `extra`.
_RESERVED_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {
    "message",
    "asctime",
    "lookup_key",
    "stage",
}

NOISY_LOGGERS: tuple[str, ...] = ("httpx", "httpcore", "openai", "uvicorn.access")


class _LookupContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
        record.lookup_key = _key_var.get()  # type: ignore[attr-defined]
        record.stage = _stage_var.get()  # type: ignore[attr-defined]
        return True


class _ExtraFieldsFormatter(logging.Formatter):
    """Append `extra` fields to the message in insertion order."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: A003
        base = super().format(record)
        fields = [f"{k}={v}" for k, v in vars(record).items() if k not in _RESERVED_ATTRS]
        return f"{base} [{' '.join(fields)}]" if fields else base


@contextlib.contextmanager
def lookup_context(*, key: str, stage: str | None = None) -> Iterator[None]:
    """Bind a lookup key (and optionally a starting stage) for the enclosed block.

    Tasks created inside the block inherit the binding, so adapters running under
    `asyncio.gather` log with the key of the lookup that spawned them.
    """

    key_token = _key_var.set(key)
    stage_token = _stage_var.set(stage or _stage_var.get())
    try:
        yield
    finally:
        _stage_var.reset(stage_token)
        _key_var.reset(key_token)


def set_stage(stage: str) -> None:
    _stage_var.set(stage)


def configure_logging(level: str = "INFO") -> None:
    """Install a single rich handler on the root logger.

    Safe to call repeatedly: an existing rich handler is reconfigured rather than duplicated.
    """

    root = logging.getLogger()
    root.setLevel(level.upper())

    handler = next((h for h in root.handlers if isinstance(h, RichHandler)), None)
    if handler is None:
        handler = RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=False)
        root.addHandler(handler)

    handler.filters.clear()
    handler.addFilter(_LookupContextFilter())
    handler.setFormatter(_ExtraFieldsFormatter("key=%(lookup_key)s stage=%(stage)s %(name)s: %(message)s"))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
