import json

import pytest

from conftest import SUBMIT_LOCATOR, SUBMIT_XPATH, FakeOracle, FakePage, FakeSnapshotProvider
from engine import runner
from engine.cache import ResolutionCache
from engine.config import load_options
from engine.reporting import start_run
from engine.resolver import ActionResolver


def _resolver(page, oracle, tmp_path):
    return ActionResolver(page, oracle, ResolutionCache(tmp_path / "cache"),
                          snapshot_provider=FakeSnapshotProvider({7: SUBMIT_XPATH}), timeout_ms=10)


def _options(tmp_path):
    opts = load_options({}, env={"ACT_CACHE_DIR": str(tmp_path / "cache")})
    opts["timeout_ms"] = 10
    return opts


def test_steps_drive_page_and_record_outcomes(tmp_path):
    page = FakePage(attached={SUBMIT_LOCATOR})
    oracle = FakeOracle(locator_reply=7, action_reply={"element": 7, "method": "click", "args": []})
    results = start_run("t", "https://shop.test", "chromium", "s1")

    runner.run_steps(
        _resolver(page, oracle, tmp_path),
        [{"goto": "/cart"}, {"observe": "the ${WHAT} button", "expect": "found"}, {"act": "click on Submit"},
         {"wait": "0ms"}],
        base_url="https://shop.test", options=_options(tmp_path), results=results, variables={"WHAT": "submit"},
    )

    assert page.visited == ["https://shop.test/cart"]
    assert page.calls == [("click", SUBMIT_LOCATOR, ())]
    steps = results["steps"]
    assert [s["status"] for s in steps] == ["passed"] * 4
    assert steps[1]["instruction"] == "the submit button"
    assert steps[1]["outcome"] == "found"
    assert steps[1]["key"]


def test_observe_expectation_mismatch_fails_step(tmp_path):
    page = FakePage(attached={SUBMIT_LOCATOR})
    results = start_run("t", None, "chromium", "s1")
    with pytest.raises(AssertionError):
        runner.run_steps(_resolver(page, FakeOracle(locator_reply=None), tmp_path),
                         [{"observe": "the price label", "expect": "found"}],
                         base_url=None, options=_options(tmp_path), results=results, variables={})
    assert results["steps"][0]["status"] == "failed"
    assert results["steps"][0]["outcome"] == "missing"


def test_continue_on_fail_keeps_going(tmp_path):
    page = FakePage(attached={SUBMIT_LOCATOR})
    oracle = FakeOracle(action_reply={"element": 99, "method": "click", "args": []})
    results = start_run("t", None, "chromium", "s1")
    runner.run_steps(_resolver(page, oracle, tmp_path),
                     [{"act": "click the ghost", "continue_on_fail": True}, {"wait": 0}],
                     base_url=None, options=_options(tmp_path), results=results, variables={})
    assert [s["status"] for s in results["steps"]] == ["failed-continued", "passed"]


def test_run_scenario_writes_reports(tmp_path, monkeypatch):
    scenario = tmp_path / "s.yaml"
    scenario.write_text(
        "name: demo\nbase_url: https://shop.test\nsteps:\n  - goto: /\n  - act: click on Submit\n",
        encoding="utf-8",
    )
    page = FakePage(attached={SUBMIT_LOCATOR})
    closed = []
    monkeypatch.setattr(runner, "open_browser", lambda *a, **kw: (None, None, None, page))
    monkeypatch.setattr(runner, "close_browser", lambda p, b, c: closed.append(True))
    monkeypatch.setattr(runner, "build_resolver", lambda pg, opts: _resolver(
        pg, FakeOracle(action_reply={"element": 7, "method": "click", "args": []}), tmp_path))

    code = runner.run_scenario(scenario, overrides={"session_id": "fixed"}, reports_dir=tmp_path / "reports")

    assert code == 0
    assert closed == [True]
    report = json.loads((tmp_path / "reports" / "report.json").read_text(encoding="utf-8"))
    assert report["status"] == "passed"
    assert report["session_id"] == "fixed"
    assert "click on Submit" in (tmp_path / "reports" / "report_summary.txt").read_text(encoding="utf-8")


def test_run_scenario_failure_returns_one(tmp_path, monkeypatch):
    scenario = tmp_path / "s.yaml"
    scenario.write_text("steps:\n  - act: click the ghost\n", encoding="utf-8")
    page = FakePage(attached=set())
    page.screenshot = lambda path: None
    monkeypatch.setattr(runner, "open_browser", lambda *a, **kw: (None, None, None, page))
    monkeypatch.setattr(runner, "close_browser", lambda p, b, c: None)
    monkeypatch.setattr(runner, "build_resolver", lambda pg, opts: _resolver(
        pg, FakeOracle(action_reply={"element": 7, "method": "click", "args": []}), tmp_path))

    assert runner.run_scenario(scenario, reports_dir=tmp_path / "reports") == 1
    report = json.loads((tmp_path / "reports" / "report.json").read_text(encoding="utf-8"))
    assert report["status"] == "failed"
    assert report["artifacts"][0]["type"] == "screenshot"
