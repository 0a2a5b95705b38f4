# engine/schema.py
from __future__ import annotations
from typing import Any, Dict

from engine.exceptions import ScenarioValidationError

STEP_KINDS = ("goto", "act", "observe", "wait")
OBSERVE_EXPECT = ("found", "missing")

def _is_ms_string(v: Any) -> bool:
    return isinstance(v, str) and v.strip().lower().endswith("ms") and v.strip()[:-2].strip().isdigit()

def step_kind(st: Dict[str, Any]) -> str:
    kinds = [k for k in STEP_KINDS if k in st]
    if len(kinds) != 1:
        raise ScenarioValidationError(f"Step must have exactly one of {STEP_KINDS}, got {sorted(st)}")
    return kinds[0]

def validate_scenario(s: Dict[str, Any]) -> None:
    if not isinstance(s, dict):
        raise ScenarioValidationError("Scenario must be a dict")
    steps = s.get("steps")
    if not isinstance(steps, list) or not steps:
        raise ScenarioValidationError("Scenario must have a non-empty 'steps' list")

    for i, st in enumerate(steps, start=1):
        if not isinstance(st, dict):
            raise ScenarioValidationError(f"Step {i} must be a dict")
        try:
            kind = step_kind(st)
        except ScenarioValidationError as e:
            raise ScenarioValidationError(f"Step {i}: {e}") from e
        value = st[kind]

        if kind in ("goto", "act", "observe"):
            if not isinstance(value, str) or not value.strip():
                raise ScenarioValidationError(f"Step {i} '{kind}' requires a non-empty string")

        if kind == "wait":
            # number (seconds) or "500ms"
            if isinstance(value, bool) or not (isinstance(value, (int, float)) or _is_ms_string(value)):
                raise ScenarioValidationError(f"Step {i} 'wait' value must be number (seconds) or string like '500ms'")

        if "expect" in st:
            if kind != "observe":
                raise ScenarioValidationError(f"Step {i} 'expect' is only valid on 'observe'")
            if st["expect"] not in OBSERVE_EXPECT:
                raise ScenarioValidationError(f"Step {i} 'expect' must be one of {OBSERVE_EXPECT}")

        if "continue_on_fail" in st and not isinstance(st["continue_on_fail"], bool):
            raise ScenarioValidationError(f"Step {i} 'continue_on_fail' must be bool")
