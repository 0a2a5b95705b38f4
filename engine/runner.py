# engine/runner.py
from __future__ import annotations
import logging, time
from pathlib import Path
from typing import Any, Dict, Optional

from playwright.sync_api import Error as PWError

from agents.oracle import OllamaOracle
from engine.browser import open_browser, close_browser
from engine.cache import ResolutionCache
from engine.config import load_options, resolve_url, substitute_vars
from engine.exceptions import ResolutionError
from engine.reporting import start_run, record_step, attach_artifact, finalize_run, finish_step
from engine.resolver import ActionResolver, Oracle
from engine.schema import step_kind, validate_scenario
from engine.yaml_io import read_yaml

logger = logging.getLogger(__name__)

def _parse_wait_value(v: Any) -> float:
    if isinstance(v, (int, float)): return float(v)
    s = str(v).strip().lower()
    if s.endswith("ms"):
        return float(s[:-2].strip()) / 1000.0
    return float(s)

def build_resolver(page, options: Dict[str, Any], *, oracle: Optional[Oracle] = None) -> ActionResolver:
    cache = ResolutionCache(options["cache_dir"], disabled=options["cache_disabled"])
    oracle = oracle or OllamaOracle(
        host=options["ollama_host"],
        model=options["ollama_model"],
        timeout_s=options["oracle_timeout_s"],
    )
    return ActionResolver(
        page, oracle, cache,
        session_id=options["session_id"],
        timeout_ms=options["timeout_ms"],
        settle_timeout_ms=options["settle_timeout_ms"],
    )

def execute_step(resolver: ActionResolver, step: Dict[str, Any], *, base_url, options, results, variables):
    kind = step_kind(step)
    value = substitute_vars(step[kind], variables)
    rec = record_step(results, len(results["steps"]) + 1, kind, value)
    rec["continue_on_fail"] = bool(step.get("continue_on_fail", False))

    try:
        if kind == "goto":
            resolver.page.goto(resolve_url(base_url, value), wait_until="domcontentloaded",
                               timeout=options["timeout_ms"])
            resolver.executor.settle()
        elif kind == "wait":
            time.sleep(_parse_wait_value(value))
        elif kind == "observe":
            key = resolver.observe(value)
            rec["key"] = key
            rec["outcome"] = "found" if key else "missing"
            expected = step.get("expect")
            if expected and expected != rec["outcome"]:
                raise AssertionError(f"Expected observation {value!r} to be {expected}, it was {rec['outcome']}")
        elif kind == "act":
            resolver.act(value)
            rec["outcome"] = "done"
        finish_step(rec, "passed", None)
    except (ResolutionError, PWError, AssertionError) as e:
        if rec["continue_on_fail"]:
            logger.warning("[runner] step %d failed, continuing: %s", rec["index"], e)
            finish_step(rec, "failed-continued", str(e))
            return
        finish_step(rec, "failed", str(e))
        raise

def run_steps(resolver: ActionResolver, steps, *, base_url, options, results, variables):
    for step in steps:
        execute_step(resolver, step, base_url=base_url, options=options,
                     results=results, variables=variables)

def run_scenario(path: Path, *, overrides: Optional[Dict[str, Any]] = None,
                 reports_dir: Path = Path("reports")) -> int:
    scenario = read_yaml(path)
    validate_scenario(scenario)

    name = scenario.get("name", Path(path).stem)
    base_url = scenario.get("base_url") or scenario.get("url")
    options = load_options(scenario)
    options.update(overrides or {})

    return _run_single(name, base_url, scenario["steps"], options, reports_dir)

def _run_single(name: str, base_url: Optional[str], steps, options, reports_dir: Path) -> int:
    started = time.time()
    reports_dir.mkdir(parents=True, exist_ok=True)

    p, browser, ctx, page = open_browser(
        options["browser"],
        options["headful"],
        viewport=options.get("viewport"),
        user_agent=options.get("user_agent"),
        timeout_ms=options.get("timeout_ms"),
        slow_mo=options.get("slow_mo", 0),
        proxy=options.get("proxy"),
    )

    results = start_run(name, base_url, options["browser"], options["session_id"])
    variables = dict(options.get("variables") or {})
    status, error, return_code = "failed", "interrupted", 1

    try:
        resolver = build_resolver(page, options)
        run_steps(resolver, steps, base_url=base_url, options=options,
                  results=results, variables=variables)
        status, error = "passed", None
        logger.info("[runner] scenario %r completed", name)
        return_code = 0
    except (ResolutionError, PWError, AssertionError, ValueError) as e:
        status, error = "failed", str(e)
        logger.error("[runner] scenario %r failed: %s", name, e)
        shot = reports_dir / f"fail_{int(time.time())}.png"
        try:
            page.screenshot(path=str(shot))
            attach_artifact(results, "screenshot", shot)
        except PWError as shot_err:
            logger.warning("[runner] could not take failure screenshot: %s", shot_err)
    finally:
        close_browser(p, browser, ctx)
        finalize_run(results, status, error, started, reports_dir)

    return return_code
