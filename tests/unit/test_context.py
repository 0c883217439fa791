"""Tests for the cancellable request context."""

import asyncio

from structlog.testing import capture_logs

from libstorage_client.context import DEFAULT_CANCEL_REASON, Context


class TestValues:
    def test_background_has_no_values(self) -> None:
        assert Context.background().values() == {}

    def test_value_lookup_walks_parents(self) -> None:
        ctx = Context.background().with_value("host", "tcp://h:1").with_value("call", "root")
        assert ctx.value("host") == "tcp://h:1"
        assert ctx.value("call") == "root"
        assert ctx.value("missing", "d") == "d"

    def test_nearest_value_wins(self) -> None:
        ctx = Context.background().with_value("k", 1).with_value("k", 2)
        assert ctx.value("k") == 2
        assert ctx.values() == {"k": 2}

    def test_parent_does_not_see_child_values(self) -> None:
        parent = Context.background().with_value("a", 1)
        parent.with_value("b", 2)
        assert parent.values() == {"a": 1}


class TestCancellation:
    def test_cancel_propagates_to_descendants(self) -> None:
        root = Context.background()
        child = root.with_cancel()
        grandchild = child.with_value("k", "v")
        root.cancel()
        assert child.cancelled
        assert grandchild.cancelled
        assert grandchild.reason == DEFAULT_CANCEL_REASON

    def test_cancel_does_not_affect_ancestors_or_siblings(self) -> None:
        root = Context.background()
        a = root.with_cancel()
        b = root.with_cancel()
        a.cancel("stop a")
        assert a.cancelled
        assert a.reason == "stop a"
        assert not root.cancelled
        assert not b.cancelled

    def test_child_of_cancelled_parent_starts_cancelled(self) -> None:
        root = Context.background()
        root.cancel()
        assert root.with_cancel().cancelled

    def test_cancel_is_idempotent(self) -> None:
        ctx = Context.background()
        ctx.cancel("first")
        ctx.cancel("second")
        assert ctx.reason == "first"

    async def test_wait_returns_after_cancel(self) -> None:
        ctx = Context.background().with_cancel()
        waiter = asyncio.create_task(ctx.wait())
        await asyncio.sleep(0)
        assert not waiter.done()
        ctx.cancel()
        await asyncio.wait_for(waiter, timeout=1.0)

    def test_log_is_bound(self) -> None:
        ctx = Context.background().with_value("host", "tcp://h:1").with_value("call", "root")
        with capture_logs() as logs:
            ctx.log().info("exchange complete")
        assert logs[0]["host"] == "tcp://h:1"
        assert logs[0]["call"] == "root"
