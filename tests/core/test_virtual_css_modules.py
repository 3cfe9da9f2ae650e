from __future__ import annotations

import asyncio
import logging

import pytest

from styleweave.cache import BuildState
from styleweave.core import (
    RESOLVED_VIRTUAL_MODULE_PREFIX,
    InMemoryBuildMetrics,
    MissingArtifactError,
    PluginOptions,
    VirtualModuleProtocol,
)

KEY = "/src/a.ts.css"


def run_async(coro):
    return asyncio.run(coro)


class _Context:
    def __init__(self) -> None:
        self.watched: list[str] = []

    async def resolve(self, specifier: str, importer: str) -> str | None:
        return None

    def add_watch_file(self, file_id: str) -> None:
        self.watched.append(file_id)


def _protocol(interval: float = 10.0):
    state = BuildState.create()
    metrics = InMemoryBuildMetrics()
    protocol = VirtualModuleProtocol(
        state, PluginOptions(watchdog_interval_s=interval), metrics=metrics
    )
    return protocol, state, metrics


def test_virtual_ids_round_trip():
    protocol, _, _ = _protocol()
    specifier = protocol.specifier_for("/src/a.ts")
    assert specifier == "virtual:styleweave:/src/a.ts.css"

    module_id = protocol.resolve_id(specifier)
    assert module_id == RESOLVED_VIRTUAL_MODULE_PREFIX + KEY
    assert module_id.startswith("\0")
    assert protocol.owns(module_id)
    assert protocol.key_for(module_id + "?t=123") == KEY
    assert protocol.resolve_id("./other.css") is None


def test_load_ignores_foreign_ids():
    async def scenario() -> None:
        protocol, _, _ = _protocol()
        assert await protocol.load("/src/a.ts") is None

    run_async(scenario())


def test_unknown_artifact_fails_immediately():
    async def scenario() -> None:
        protocol, _, _ = _protocol()
        with pytest.raises(MissingArtifactError, match="failed to load virtual CSS file"):
            await protocol.load(RESOLVED_VIRTUAL_MODULE_PREFIX + KEY)

    run_async(scenario())


def test_load_returns_settled_css_and_registers_watch_file():
    async def scenario() -> None:
        protocol, state, _ = _protocol()
        entry, _ = state.artifacts.get_or_create(KEY)
        entry.settle(".a { color: red; }")
        ctx = _Context()

        css = await protocol.load(RESOLVED_VIRTUAL_MODULE_PREFIX + KEY, ctx)
        assert css == ".a { color: red; }"
        assert ctx.watched == ["/src/a.ts"]

    run_async(scenario())


def test_load_waits_for_pending_entry():
    async def scenario() -> None:
        protocol, state, _ = _protocol()
        entry, _ = state.artifacts.get_or_create(KEY)

        load = asyncio.create_task(protocol.load(RESOLVED_VIRTUAL_MODULE_PREFIX + KEY))
        await asyncio.sleep(0)
        assert not load.done()

        entry.settle(".late {}")
        assert await load == ".late {}"

    run_async(scenario())


def test_load_raises_stored_error_of_rejected_entry():
    async def scenario() -> None:
        protocol, state, _ = _protocol()
        entry, _ = state.artifacts.get_or_create(KEY)
        entry.fail(ValueError("bad css"))

        with pytest.raises(ValueError, match="bad css"):
            await protocol.load(RESOLVED_VIRTUAL_MODULE_PREFIX + KEY)

    run_async(scenario())


def test_watchdog_warns_while_entry_stays_pending(caplog):
    async def scenario() -> None:
        protocol, state, metrics = _protocol(interval=0.05)
        state.artifacts.get_or_create(KEY)

        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(protocol.load(RESOLVED_VIRTUAL_MODULE_PREFIX + KEY), timeout=0.3)
        assert metrics.counters["watchdog_warnings"] >= 2

    caplog.set_level(logging.WARNING, logger="styleweave.virtual")
    run_async(scenario())

    warnings = [record for record in caplog.records if record.name == "styleweave.virtual"]
    assert len(warnings) >= 2
    assert "possible deadlock" in warnings[0].getMessage()
    assert KEY in warnings[0].getMessage()


def test_waiter_follows_replaced_entry():
    async def scenario() -> None:
        protocol, state, _ = _protocol(interval=0.02)
        stale, _ = state.artifacts.get_or_create(KEY)

        load = asyncio.create_task(protocol.load(RESOLVED_VIRTUAL_MODULE_PREFIX + KEY))
        await asyncio.sleep(0)

        state.artifacts.delete(KEY)
        fresh, is_new = state.artifacts.get_or_create(KEY)
        assert is_new
        fresh.settle(".fresh {}")

        assert await asyncio.wait_for(load, timeout=1.0) == ".fresh {}"
        assert stale.state.value == "pending"

    run_async(scenario())
