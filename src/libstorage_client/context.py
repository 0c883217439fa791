"""Cancellable, hierarchical request context.

A :class:`Context` carries two things through an exchange: a cancellation
signal and a set of key/value tags used to enrich log events. Contexts form
a tree. Cancelling a context cancels every descendant, never an ancestor or
a sibling::

    root = Context.background()
    ctx = root.with_value("host", "tcp://127.0.0.1:7979")
    call = ctx.with_cancel()
    call.cancel()          # ctx and root are untouched
"""

from __future__ import annotations

import asyncio
import weakref
from typing import Any

import structlog

from libstorage_client.logging_config import get_logger

DEFAULT_CANCEL_REASON = "context canceled"


class Context:
    """Cancellation signal plus diagnostic tags, threaded explicitly through calls."""

    def __init__(
        self,
        parent: Context | None = None,
        values: dict[str, Any] | None = None,
    ) -> None:
        self._parent = parent
        self._values: dict[str, Any] = dict(values or {})
        self._event = asyncio.Event()
        self._reason: str | None = None
        self._children: weakref.WeakSet[Context] = weakref.WeakSet()
        if parent is not None:
            parent._children.add(self)
            if parent.cancelled:
                self.cancel(parent.reason)

    @classmethod
    def background(cls) -> Context:
        """Return a new root context with no tags."""
        return cls()

    def with_cancel(self) -> Context:
        return Context(parent=self)

    def with_value(self, key: str, value: Any) -> Context:
        return Context(parent=self, values={key: value})

    def value(self, key: str, default: Any = None) -> Any:
        """Return the tag stored under ``key`` by this context or its nearest ancestor."""
        ctx: Context | None = self
        while ctx is not None:
            if key in ctx._values:
                return ctx._values[key]
            ctx = ctx._parent
        return default

    def values(self) -> dict[str, Any]:
        chain: list[Context] = []
        ctx: Context | None = self
        while ctx is not None:
            chain.append(ctx)
            ctx = ctx._parent
        merged: dict[str, Any] = {}
        for node in reversed(chain):
            merged.update(node._values)
        return merged

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str | None:
        return self._reason

    def cancel(self, reason: str | None = None) -> None:
        """Cancel this context and all of its descendants. Idempotent."""
        if self._event.is_set():
            return
        self._reason = reason or DEFAULT_CANCEL_REASON
        self._event.set()
        for child in list(self._children):
            child.cancel(self._reason)

    async def wait(self) -> None:
        """Block until the context is cancelled."""
        await self._event.wait()

    def log(self) -> structlog.BoundLogger:
        """Return a logger bound with this context's tags."""
        return get_logger(**self.values())

    def __repr__(self) -> str:
        state = "cancelled" if self.cancelled else "active"
        return f"Context({state}, values={self.values()!r})"
