"""
Tests for the checking orchestrator.

Collaborators are the in-memory reference implementations; remote services
are `httpx.MockTransport` handlers behind a real RemoteGateway.
"""

import asyncio
from unittest.mock import patch

import httpx
import pytest
import pytest_asyncio

from smartchecker.models.linting import FileType, LintSeverity
from smartchecker.models.settings import CheckerSettings
from smartchecker.services.check_history import CheckHistory
from smartchecker.services.collaborators import InMemoryBuffer, RecordingSink, RecordingStatusReporter
from smartchecker.services.local_linter import LocalLintEngine
from smartchecker.services.orchestrator import CheckOrchestrator, CheckState
from smartchecker.services.remote_checkers import RemoteEndpoint
from smartchecker.services.remote_gateway import RemoteGateway

ENDPOINTS = {
    FileType.PYTHON: RemoteEndpoint("https://py.test/check", "https://py.test/status"),
    FileType.TYPESCRIPT: RemoteEndpoint("https://ts.test/check", "https://ts.test/status"),
}

PYRIGHT_PAYLOAD = {
    "diagnostics": [
        {"range": {"start": {"line": 0, "character": 4}}, "message": "remote issue", "severity": "error", "rule": "reportX"},
        {"range": {"start": {"line": 1, "character": 0}}, "message": "remote hint", "severity": "information"},
    ]
}


class MemorySettingsStore:
    def __init__(self, **overrides):
        overrides.setdefault("check_delay_ms", 20)
        self.settings = CheckerSettings(**overrides)
        self.saved = []

    def get_settings(self):
        return self.settings

    def save_settings(self, settings):
        self.settings = settings
        self.saved.append(settings)


class RemoteService:
    """Mock transport handler with switchable behaviour per host."""

    def __init__(self, down=(), failing=()):
        self.down = set(down)
        self.failing = set(failing)
        self.posts = []

    def __call__(self, request):
        host = request.url.host
        if request.method == "HEAD":
            return httpx.Response(503 if host in self.down else 200)
        self.posts.append(host)
        if host in self.failing:
            return httpx.Response(500)
        return httpx.Response(200, json=PYRIGHT_PAYLOAD if host == "py.test" else {"diagnostics": []})


@pytest_asyncio.fixture
async def remote():
    service = RemoteService()
    async with httpx.AsyncClient(transport=httpx.MockTransport(service)) as client:
        yield service, RemoteGateway(ENDPOINTS, client=client)


def build(text="let x = 1", filename="app.js", gateway=None, **settings):
    return CheckOrchestrator(
        buffer=InMemoryBuffer(text, filename),
        sink=RecordingSink(),
        settings_store=MemorySettingsStore(**settings),
        engine=LocalLintEngine(debounce_ms=0),
        gateway=gateway,
        result_store=CheckHistory(),
        status_reporter=RecordingStatusReporter(),
    )


class TestDebounce:
    @pytest.mark.asyncio
    async def test_burst_of_triggers_runs_one_check(self):
        orchestrator = build(severity_level="info")
        for _ in range(5):
            orchestrator.trigger("buffer-change")
        assert orchestrator.state is CheckState.DEBOUNCING

        await orchestrator.wait_idle()

        assert orchestrator.check_count == 1
        assert len(orchestrator.sink.deliveries) == 1
        assert [d.rule for d in orchestrator.sink.current] == ["semi"]
        assert orchestrator.state is CheckState.IDLE

    @pytest.mark.asyncio
    async def test_separate_quiet_periods_run_separately(self):
        orchestrator = build()
        orchestrator.trigger()
        await orchestrator.wait_idle()
        orchestrator.trigger()
        await orchestrator.wait_idle()

        assert orchestrator.check_count == 2

    @pytest.mark.asyncio
    async def test_trigger_during_check_queues_fresh_cycle(self):
        orchestrator = build()
        original = orchestrator.engine.scan

        async def slow_scan(content, file_type):
            await asyncio.sleep(0.05)
            return await original(content, file_type)

        with patch.object(orchestrator.engine, "scan", side_effect=slow_scan):
            running = asyncio.ensure_future(orchestrator.run_check())
            await asyncio.sleep(0.01)
            assert orchestrator.state is CheckState.CHECKING
            orchestrator.trigger("buffer-change")
            await running
            await orchestrator.wait_idle()

        assert orchestrator.check_count == 2
        # Superseded results are still delivered
        assert len(orchestrator.sink.deliveries) == 2

    @pytest.mark.asyncio
    async def test_cycles_are_serialized(self):
        orchestrator = build()
        active = 0
        peak = 0

        async def tracking_scan(content, file_type):
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.02)
            active -= 1
            return []

        with patch.object(orchestrator.engine, "scan", side_effect=tracking_scan):
            await asyncio.gather(orchestrator.run_check(), orchestrator.run_check(), orchestrator.run_check())

        assert peak == 1
        assert orchestrator.check_count == 3


class TestShortCircuits:
    @pytest.mark.asyncio
    async def test_disabled_clears_without_scanning(self):
        orchestrator = build(enabled=False)
        assert await orchestrator.run_check() is None

        assert orchestrator.sink.clear_count == 1
        assert orchestrator.check_count == 0
        assert orchestrator.status_reporter.latest.state == "idle"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("text, filename", [("   \n\t", "app.js"), ("let x = 1", None), ("", "a.py")])
    async def test_blank_buffer_or_missing_name_clears(self, text, filename):
        orchestrator = build(text=text, filename=filename)
        await orchestrator.run_check()

        assert orchestrator.sink.clear_count == 1
        assert orchestrator.check_count == 0
        assert len(orchestrator.result_store) == 0

    @pytest.mark.asyncio
    async def test_unknown_file_type_is_neutral(self):
        orchestrator = build(text="hello", filename="notes.txt")
        await orchestrator.run_check()

        status = orchestrator.status_reporter.latest
        assert status.state == "unsupported"
        assert status.message == "Unsupported file type"
        assert orchestrator.check_count == 0


class TestEngineSelection:
    @pytest.mark.asyncio
    async def test_local_when_remote_disabled(self, remote):
        service, gateway = remote
        orchestrator = build(text="def f():\nreturn 1", filename="a.py", gateway=gateway)
        report = await orchestrator.run_check()

        assert report.engine == "local"
        assert service.posts == []
        assert [d.rule for d in report.diagnostics] == ["expected-indent"]

    @pytest.mark.asyncio
    async def test_remote_results_are_filtered(self, remote):
        service, gateway = remote
        orchestrator = build(text="import x\nprint(x)", filename="a.py", gateway=gateway, use_remote=True)
        report = await orchestrator.run_check()

        assert report.engine == "remote"
        assert service.posts == ["py.test"]
        # The information-level hint is below the default "warning" threshold
        assert [(d.message, d.severity) for d in orchestrator.sink.current] == [("remote issue", LintSeverity.ERROR)]

    @pytest.mark.asyncio
    async def test_probed_unavailable_goes_straight_to_local(self, remote):
        service, gateway = remote
        service.down.add("py.test")
        await gateway.probe_all()

        orchestrator = build(
            text="def f():\nreturn 1", filename="a.py", gateway=gateway, use_remote=True, fallback_to_local=True
        )
        report = await orchestrator.run_check()

        assert report.engine == "local"
        assert service.posts == []
        assert {d.source for d in orchestrator.sink.current} == {"Local Checker"}

    @pytest.mark.asyncio
    async def test_strict_failure_falls_back_to_local(self, remote):
        service, gateway = remote
        service.failing.add("ts.test")
        orchestrator = build(text="if (a == b) {\n}", filename="app.ts", gateway=gateway, use_remote=True)

        states = []
        original = orchestrator.engine.scan

        async def spy(content, file_type):
            states.append(orchestrator.state)
            return await original(content, file_type)

        with patch.object(orchestrator.engine, "scan", side_effect=spy):
            report = await orchestrator.run_check()

        assert report.engine == "fallback"
        assert states == [CheckState.FALLBACK_CHECKING]
        assert [d.rule for d in orchestrator.sink.current] == ["eqeqeq"]
        assert orchestrator.state is CheckState.IDLE

    @pytest.mark.asyncio
    async def test_strict_failure_without_fallback_is_empty(self, remote):
        service, gateway = remote
        service.failing.add("ts.test")
        orchestrator = build(
            text="if (a == b) {\n}", filename="app.ts", gateway=gateway, use_remote=True, fallback_to_local=False
        )
        report = await orchestrator.run_check()

        assert report.engine == "remote"
        assert report.diagnostics == []
        assert orchestrator.sink.deliveries == [[]]

    @pytest.mark.asyncio
    async def test_non_strict_failure_resolves_empty(self, remote):
        service, gateway = remote
        service.failing.add("py.test")
        orchestrator = build(text="def f():\nreturn 1", filename="a.py", gateway=gateway, use_remote=True)
        report = await orchestrator.run_check()

        assert report.engine == "remote"
        assert report.diagnostics == []

    @pytest.mark.asyncio
    async def test_file_type_without_remote_capability_is_local(self, remote):
        service, gateway = remote
        orchestrator = build(text='{"a":1,}', filename="data.json", gateway=gateway, use_remote=True)
        report = await orchestrator.run_check()

        assert report.engine == "local"
        assert service.posts == []
        assert [d.source for d in report.diagnostics] == ["JSON Parser"]


class TestDelivery:
    @pytest.mark.asyncio
    async def test_result_store_and_status(self):
        orchestrator = build(text="if (a == b) {\n}", filename="src/app.js")
        await orchestrator.run_check()

        record = orchestrator.result_store.latest()
        assert record.file_meta.name == "src/app.js"
        assert record.file_meta.file_type is FileType.JAVASCRIPT
        assert record.file_meta.lines == 2
        assert record.file_meta.size == len("if (a == b) {\n}")
        assert record.file_meta.engine == "local"
        assert record.stats.warnings == 1

        status = orchestrator.status_reporter.latest
        assert status.state == "done"
        assert status.warning_count == 1
        assert status.message == "1 warning"

    @pytest.mark.asyncio
    async def test_unexpected_fault_delivers_empty_result(self):
        orchestrator = build()
        with patch.object(orchestrator.buffer, "get_text", side_effect=RuntimeError("buffer gone")):
            report = await orchestrator.run_check()

        assert report.diagnostics == []
        assert orchestrator.sink.deliveries == [[]]
        assert orchestrator.result_store.latest().file_meta.error == "buffer gone"
        status = orchestrator.status_reporter.latest
        assert status.state == "error"
        assert "buffer gone" in status.message

    @pytest.mark.asyncio
    async def test_check_content_does_not_deliver(self):
        orchestrator = build()
        report = await orchestrator.check_content("const arr = [1 2];", "x.js")

        assert [d.rule for d in report.diagnostics] == ["comma-dangle"]
        assert orchestrator.sink.deliveries == []
        assert len(orchestrator.result_store) == 0

    @pytest.mark.asyncio
    async def test_check_content_short_circuits(self):
        orchestrator = build()
        assert (await orchestrator.check_content("  ", "x.js")).engine == "none"
        assert (await orchestrator.check_content("x", "x.txt")).engine == "none"
        disabled = CheckerSettings(enabled=False)
        assert (await orchestrator.check_content("let x = 1", "x.js", settings=disabled)).engine == "none"
        assert orchestrator.check_count == 0


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_start_probes_subscribes_and_checks(self, remote):
        service, gateway = remote
        service.down.add("ts.test")
        orchestrator = build(gateway=gateway)

        await orchestrator.start()
        assert orchestrator.subscribed
        assert gateway.availability == {FileType.PYTHON: True, FileType.TYPESCRIPT: False}

        orchestrator.buffer.set_text("let y = 2")
        await orchestrator.wait_idle()

        # Startup trigger and the edit fall into one quiet period
        assert orchestrator.check_count == 1
        await orchestrator.close()
        assert not orchestrator.subscribed

    @pytest.mark.asyncio
    async def test_availability_refresh_without_subscribing_or_checking(self, remote):
        service, gateway = remote
        service.down.add("py.test")
        orchestrator = build(gateway=gateway)

        availability = await orchestrator.probe_remote()

        assert availability == {FileType.PYTHON: False, FileType.TYPESCRIPT: True}
        assert not orchestrator.subscribed
        assert orchestrator.state is CheckState.IDLE
        assert orchestrator.check_count == 0

    @pytest.mark.asyncio
    async def test_availability_refresh_failure_is_logged_not_raised(self, remote):
        _, gateway = remote
        orchestrator = build(gateway=gateway)
        with patch.object(gateway, "probe_all", side_effect=RuntimeError("dns down")):
            assert await orchestrator.probe_remote() == {}
        assert await build().probe_remote() == {}

    @pytest.mark.asyncio
    async def test_no_subscription_without_realtime(self):
        orchestrator = build(realtime_checking=False)
        await orchestrator.start()
        await orchestrator.wait_idle()

        assert not orchestrator.subscribed
        assert orchestrator.buffer.subscriber_count == 0
        assert orchestrator.check_count == 1

    @pytest.mark.asyncio
    async def test_apply_settings_disabled_cancels_and_clears(self):
        orchestrator = build()
        await orchestrator.start()
        orchestrator.apply_settings(CheckerSettings(enabled=False, realtime_checking=False))
        await orchestrator.wait_idle()

        assert orchestrator.check_count == 0
        assert orchestrator.sink.clear_count == 1
        assert orchestrator.settings_store.saved[-1].enabled is False
        assert not orchestrator.subscribed

    @pytest.mark.asyncio
    async def test_apply_settings_triggers_recheck(self):
        orchestrator = build()
        orchestrator.apply_settings(CheckerSettings(severity_level="info", check_delay_ms=10))
        await orchestrator.wait_idle()

        assert orchestrator.check_count == 1
        assert [d.rule for d in orchestrator.sink.current] == ["semi"]
