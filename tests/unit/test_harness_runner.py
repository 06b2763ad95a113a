"""Unit tests for the runner and its CLI."""
from __future__ import annotations

import json
import threading
from pathlib import Path
from unittest.mock import MagicMock

import pytest

import test_runner
from config import HarnessConfig
from exceptions import HarnessError, TestSkipped
from registry import ResourceRegistry
from reporters import JSONReporter, ReportSink
from test_runner import HarnessRunner, TestContext, _build_arg_parser, load_test_function, main, run_from_cli_args
from test_types import Outcome, TestCase


@pytest.fixture
def config(temp_dir: Path) -> HarnessConfig:
    return HarnessConfig(
        reporting={
            "screenshots_folder": str(temp_dir / "shots"),
            "reports_folder": str(temp_dir / "reports"),
        },
        retry={"max_attempts": 2},
    )


@pytest.fixture
def sink(temp_dir: Path) -> ReportSink:
    return ReportSink(temp_dir / "reports", [JSONReporter()])


@pytest.fixture
def registry(fake_session_factory) -> ResourceRegistry:
    return ResourceRegistry(fake_session_factory)


def make_runner(config, test_fn, sink, registry) -> HarnessRunner:
    return HarnessRunner(config, test_fn, sink=sink, registry=registry)


class TestTestContext:
    """Tests for TestContext helpers."""

    def test_url_prefers_case_start_url(self, config):
        case = TestCase(id="t", start_url="https://a.example.com/")
        ctx = TestContext(case, MagicMock(), MagicMock(), config)
        assert ctx.url() == "https://a.example.com/"
        assert ctx.url("/login") == "https://a.example.com/login"

    def test_url_falls_back_to_base_url(self):
        config = HarnessConfig(base_url="https://shop.example.com")
        ctx = TestContext(TestCase(id="t", data={"q": 1}), MagicMock(), MagicMock(), config)
        assert ctx.url("cart") == "https://shop.example.com/cart"
        assert ctx.data == {"q": 1}


class TestHarnessRunner:
    """Tests for HarnessRunner.run_case / run_all."""

    def test_passing_case(self, config, sink, registry, fake_session_factory):
        seen = []
        runner = make_runner(config, lambda ctx: seen.append(ctx), sink, registry)

        result = runner.run_case(TestCase(id="home", description="Home page", tags={"smoke"}))

        assert result.outcome is Outcome.PASSED
        assert result.attempt_count == 1
        assert result.description == "Home page"
        assert seen[0].attempt == 0
        assert seen[0].session is fake_session_factory.instances[0]
        assert fake_session_factory.instances[0].closed
        assert len(registry) == 0

    def test_retry_uses_fresh_session_and_screenshot(self, config, sink, registry, fake_session_factory):
        sessions = []

        def test_fn(ctx):
            sessions.append(ctx.session)
            if ctx.attempt == 0:
                raise AssertionError("button missing")

        runner = make_runner(config, test_fn, sink, registry)
        result = runner.run_case(TestCase(id="login"))

        assert [a.outcome for a in result.attempts] == [Outcome.FAILED, Outcome.PASSED]
        assert sessions[0] is not sessions[1]
        assert sessions[0].closed and sessions[1].closed
        assert len(sessions[0].screenshots) == 1
        assert result.attempts[0].artifact_ref == sessions[0].screenshots[0]
        assert result.outcome is Outcome.PASSED

        row = sink.get("login")
        assert [a.outcome for a in row.attempts] == [Outcome.FAILED, Outcome.PASSED]

    def test_exhausted_failure(self, config, sink, registry):
        def test_fn(ctx):
            raise AssertionError(f"attempt {ctx.attempt} failed")

        result = make_runner(config, test_fn, sink, registry).run_case(TestCase(id="checkout"))

        assert result.outcome is Outcome.FAILED
        assert result.attempt_count == 2
        assert result.final.retries_exhausted
        assert result.reason.startswith("Failed after 2 attempts: AssertionError: attempt 1 failed")

    def test_screenshots_disabled(self, temp_dir, sink, registry, fake_session_factory):
        config = HarnessConfig(reporting={"screenshot_on_failure": False}, retry={"max_attempts": 1})

        def test_fn(ctx):
            raise AssertionError("boom")

        result = make_runner(config, test_fn, sink, registry).run_case(TestCase(id="t"))

        assert result.artifact_ref is None
        assert fake_session_factory.instances[0].screenshots == []
        assert fake_session_factory.instances[0].closed

    def test_case_max_attempts_override(self, config, sink, registry):
        calls = []

        def test_fn(ctx):
            calls.append(ctx.attempt)
            raise AssertionError("flaky")

        make_runner(config, test_fn, sink, registry).run_case(TestCase(id="t", max_attempts=4))

        assert calls == [0, 1, 2, 3]

    def test_skipped_case_not_run(self, config, sink, registry, fake_session_factory):
        test_fn = MagicMock()

        result = make_runner(config, test_fn, sink, registry).run_case(
            TestCase(id="legacy", skip=True, skip_reason="retired")
        )

        test_fn.assert_not_called()
        assert result.outcome is Outcome.SKIPPED
        assert "retired" in result.reason
        assert fake_session_factory.instances == []
        assert sink.get("legacy").outcome is Outcome.SKIPPED

    def test_skip_signal_not_retried(self, config, sink, registry):
        calls = []

        def test_fn(ctx):
            calls.append(ctx.attempt)
            raise TestSkipped("feature flag off")

        result = make_runner(config, test_fn, sink, registry).run_case(TestCase(id="t"))

        assert calls == [0]
        assert result.outcome is Outcome.SKIPPED

    def test_session_creation_failure_is_a_failed_attempt(self, config, sink):
        def factory():
            raise OSError("browser binary missing")

        runner = make_runner(config, MagicMock(), sink, ResourceRegistry(factory))
        result = runner.run_case(TestCase(id="t"))

        assert result.outcome is Outcome.FAILED
        assert result.error.kind == "ResourceCreationError"
        assert result.attempts[0].artifact_ref is None

    def test_screenshot_io_error_still_reports_failure(self, config, sink, fake_session_factory):
        def factory():
            session = fake_session_factory()
            session.save_screenshot = MagicMock(side_effect=OSError("No space left on device"))
            return session

        def test_fn(ctx):
            raise AssertionError("boom")

        result = make_runner(config, test_fn, sink, ResourceRegistry(factory)).run_case(TestCase(id="t"))

        assert [a.outcome for a in result.attempts] == [Outcome.FAILED, Outcome.FAILED]
        assert result.artifact_ref is None
        assert sink.get("t").outcome is Outcome.FAILED
        assert all(s.closed for s in fake_session_factory.instances)

    def test_run_case_returns_only_its_own_attempts(self, config, sink, registry):
        runner = make_runner(config, lambda ctx: None, sink, registry)

        first = runner.run_case(TestCase(id="same"))
        second = runner.run_case(TestCase(id="same"))

        assert first.attempts[0] is not second.attempts[0]
        assert runner.executor.attempts("same") == []

    def test_run_all_drops_sessions_of_other_threads(self, config, sink, registry, fake_session_factory):
        stale = registry.acquire(context_id="worker-gone")

        make_runner(config, lambda ctx: None, sink, registry).run_all([TestCase(id="a")])

        assert "worker-gone" not in registry
        assert not stale.closed
        assert len(registry) == 0

    def test_run_all_sequential(self, config, sink, registry, temp_dir):
        cases = [TestCase(id=f"t{i}") for i in range(3)]

        suite = make_runner(config, lambda ctx: None, sink, registry).run_all(cases)

        assert suite.total == 3
        assert suite.passed == 3
        assert [r.test_id for r in suite.results] == ["t0", "t1", "t2"]
        report = json.loads((temp_dir / "reports" / "report.json").read_text())
        assert report["summary"]["total"] == 3

    def test_run_all_parallel_one_session_per_thread(self, config, sink, registry, fake_session_factory):
        config.parallel_workers = 3
        owners = {}
        lock = threading.Lock()

        def test_fn(ctx):
            with lock:
                owners.setdefault(id(ctx.session), set()).add(threading.get_ident())
            if ctx.case.data.get("flaky") and ctx.attempt == 0:
                raise AssertionError("first try fails")

        cases = [TestCase(id=f"t{i}", data={"flaky": i % 2 == 0}) for i in range(8)]
        suite = make_runner(config, test_fn, sink, registry).run_all(cases)

        assert suite.passed == 8
        assert all(len(threads) == 1 for threads in owners.values())
        assert all(s.closed for s in fake_session_factory.instances)
        assert len(sink.results()) == 8
        retried = [r for r in suite.results if r.retried]
        assert {r.test_id for r in retried} == {"t0", "t2", "t4", "t6"}

    def test_run_all_flushes_once(self, config, registry):
        sink = MagicMock()
        make_runner(config, lambda ctx: None, sink, registry).run_all([TestCase(id="a"), TestCase(id="b")])
        sink.on_finish.assert_called_once()

    def test_default_sink_and_registry(self, config):
        runner = HarnessRunner(config, lambda ctx: None)
        assert isinstance(runner.sink, ReportSink)
        assert isinstance(runner.registry, ResourceRegistry)


class TestLoadTestFunction:
    """Tests for load_test_function."""

    def test_resolves_callable(self):
        assert load_test_function("test_runner:load_test_function") is load_test_function

    @pytest.mark.parametrize("spec", ["no_colon", ":func", "module:"])
    def test_malformed_spec(self, spec):
        with pytest.raises(HarnessError):
            load_test_function(spec)

    def test_unknown_module_or_attribute(self):
        with pytest.raises(HarnessError):
            load_test_function("does_not_exist_mod:fn")
        with pytest.raises(HarnessError):
            load_test_function("test_runner:nope")


class TestCli:
    """Tests for the command line entry point."""

    @pytest.fixture
    def data_dir(self, temp_dir: Path) -> Path:
        cases = temp_dir / "cases"
        cases.mkdir()
        (cases / "login.yaml").write_text("id: login\ntags: [smoke]\ndata:\n  user: student\n")
        (cases / "search.yaml").write_text("id: search\ntags: [regression]\n")
        return cases

    @pytest.fixture
    def patched(self, monkeypatch, fake_session_factory):
        monkeypatch.setattr(test_runner, "create_session", lambda options, logger=None: fake_session_factory())
        calls = []

        def suite(ctx):
            calls.append(ctx.case.id)
            if ctx.case.id == "search":
                raise AssertionError("no results")

        monkeypatch.setattr(test_runner, "load_test_function", lambda spec: suite)
        return calls

    def parse(self, *argv):
        return _build_arg_parser().parse_args(list(argv))

    def test_parser_defaults(self):
        args = self.parse("--suite", "pkg.mod:fn")
        assert args.data_dir == "testdata"
        assert args.parallel is None
        assert args.headful is None
        assert args.drop_skipped is False

    def test_suite_is_required(self):
        with pytest.raises(SystemExit):
            self.parse()

    def test_run_passes_with_tag_filter(self, data_dir, temp_dir, patched, monkeypatch):
        monkeypatch.chdir(temp_dir)
        args = self.parse(
            "--suite", "x:y", "--data-dir", str(data_dir), "--tag", "smoke",
            "--reports-dir", str(temp_dir / "out"), "--output-format", "json",
        )

        code = run_from_cli_args(args, MagicMock())

        assert code == 0
        assert patched == ["login"]
        assert (temp_dir / "out" / "report.json").exists()

    def test_failure_exit_code(self, data_dir, temp_dir, patched, monkeypatch):
        monkeypatch.chdir(temp_dir)
        args = self.parse(
            "--suite", "x:y", "--data-dir", str(data_dir), "--max-attempts", "1",
            "--reports-dir", str(temp_dir / "out"),
        )

        assert run_from_cli_args(args, MagicMock()) == 1
        assert sorted(patched) == ["login", "search"]

    def test_unknown_case_id(self, data_dir, patched):
        args = self.parse("--suite", "x:y", "--data-dir", str(data_dir), "--case", "ghost")
        assert run_from_cli_args(args, MagicMock()) == 1

    def test_duplicate_case_ids_fail_before_running(self, data_dir, patched):
        (data_dir / "login_again.yaml").write_text("id: login\n")
        args = self.parse("--suite", "x:y", "--data-dir", str(data_dir))

        assert run_from_cli_args(args, MagicMock()) == 1
        assert patched == []

    def test_no_matching_cases(self, data_dir, patched):
        args = self.parse("--suite", "x:y", "--data-dir", str(data_dir), "--tag", "nothing")
        assert run_from_cli_args(args, MagicMock()) == 0
        assert patched == []

    def test_main_exits_with_code(self, data_dir, temp_dir, patched, monkeypatch):
        monkeypatch.chdir(temp_dir)
        with pytest.raises(SystemExit) as exc_info:
            main(["--suite", "x:y", "--data-dir", str(data_dir), "--tag", "smoke", "-q"])
        assert exc_info.value.code == 0

    def test_main_interrupted(self, monkeypatch):
        def interrupted(args, logger):
            raise KeyboardInterrupt()

        monkeypatch.setattr(test_runner, "run_from_cli_args", interrupted)
        with pytest.raises(SystemExit) as exc_info:
            main(["--suite", "x:y"])
        assert exc_info.value.code == 130
