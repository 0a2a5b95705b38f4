import json

import pytest

from engine.cache import ACTIONS, ResolutionCache
from engine.keys import derive_key
from ui import cli


@pytest.fixture
def cache_dir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("ACT_CACHE_DIR", str(tmp_path / "cache"))
    monkeypatch.delenv("ACT_CACHE_DISABLED", raising=False)
    return tmp_path / "cache"


def _run(argv):
    with pytest.raises(SystemExit) as exc:
        cli.main(argv)
    return exc.value.code


def test_pin_show_clear(cache_dir, tmp_path, capsys):
    cmds = tmp_path / "cmds.json"
    cmds.write_text(json.dumps({"locator": "xpath=//button[@id='submit']", "method": "click", "args": []}),
                    encoding="utf-8")

    assert _run(["cache", "pin", "click on Submit", str(cmds), "--session-id", "review-1"]) == 0
    key = derive_key("click on Submit")
    entry = ResolutionCache(cache_dir).load(ACTIONS)[key]
    assert entry.session_id == "review-1"
    assert json.loads(entry.result) == [{"locator": "xpath=//button[@id='submit']", "method": "click", "args": []}]

    assert _run(["cache", "show", "--namespace", "actions"]) == 0
    assert key in capsys.readouterr().out

    assert _run(["cache", "clear"]) == 0
    assert ResolutionCache(cache_dir).load(ACTIONS) == {}


def test_pin_rejects_element_id_targets(cache_dir, tmp_path):
    cmds = tmp_path / "cmds.json"
    cmds.write_text(json.dumps([{"element": 7, "method": "click", "args": []}]), encoding="utf-8")
    assert _run(["cache", "pin", "click on Submit", str(cmds)]) == 2
    assert ResolutionCache(cache_dir).load(ACTIONS) == {}


def test_pin_rejects_unknown_primitive(cache_dir, tmp_path):
    cmds = tmp_path / "cmds.json"
    cmds.write_text(json.dumps([{"locator": "xpath=//a", "method": "drag", "args": []}]), encoding="utf-8")
    assert _run(["cache", "pin", "drag it", str(cmds)]) == 2


def test_run_passes_overrides(cache_dir, tmp_path, monkeypatch):
    seen = {}

    def fake_run_scenario(path, *, overrides, reports_dir):
        seen.update(path=path, overrides=overrides, reports_dir=reports_dir)
        return 0

    monkeypatch.setattr(cli, "run_scenario", fake_run_scenario)
    assert _run(["run", "s.yaml", "--no-cache", "--session-id", "abc"]) == 0
    assert seen["overrides"] == {"cache_disabled": True, "session_id": "abc"}
    assert str(seen["path"]) == "s.yaml"


def test_run_accepts_verbose_after_scenario(cache_dir, monkeypatch):
    monkeypatch.setattr(cli, "run_scenario", lambda path, *, overrides, reports_dir: 0)
    assert _run(["run", "s.yaml", "--verbose"]) == 0
    assert cli.build_argparser().parse_args(["run", "s.yaml", "-v"]).verbose is True
    assert cli.build_argparser().parse_args(["-v", "run", "s.yaml"]).verbose is True
    assert cli.build_argparser().parse_args(["run", "s.yaml"]).verbose is False


@pytest.mark.parametrize("content", [None, "{not json"])
def test_pin_rejects_missing_or_broken_commands_file(cache_dir, tmp_path, content):
    cmds = tmp_path / "cmds.json"
    if content is not None:
        cmds.write_text(content, encoding="utf-8")
    assert _run(["cache", "pin", "click on Submit", str(cmds)]) == 2
    assert ResolutionCache(cache_dir).load(ACTIONS) == {}


def test_pin_with_disabled_cache_warns_and_writes_nothing(cache_dir, tmp_path, monkeypatch, caplog, capsys):
    monkeypatch.setenv("ACT_CACHE_DISABLED", "1")
    cmds = tmp_path / "cmds.json"
    cmds.write_text(json.dumps({"locator": "xpath=//a", "method": "click", "args": []}), encoding="utf-8")

    assert _run(["cache", "pin", "click the link", str(cmds)]) == 1
    assert "was not pinned" in caplog.text
    assert capsys.readouterr().out == ""
    assert not (cache_dir / "actions.json").exists()
