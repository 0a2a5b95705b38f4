
from __future__ import annotations
import os, random, string, uuid
from typing import Optional, Any, Dict, Sequence

def _parse_viewport(v) -> Optional[Sequence[int]]:
    if not v: return None
    if isinstance(v, (list, tuple)) and len(v) == 2: return [int(v[0]), int(v[1])]
    if isinstance(v, str):
        parts = [p.strip() for p in v.lower().replace("×", "x").split("x")]
        if len(parts) == 2 and parts[0].isdigit() and parts[1].isdigit():
            return [int(parts[0]), int(parts[1])]
    return None

def _flag(v: Any) -> bool:
    if isinstance(v, bool): return v
    return str(v).strip().lower() in ("1", "true", "yes", "on")

def _rand_token(n: int = 6) -> str:
    return "".join(random.choice(string.ascii_lowercase + string.digits) for _ in range(n))

def load_options(scenario: Optional[dict] = None, env=os.environ) -> Dict[str, Any]:
    scenario = scenario or {}
    opts = scenario.get("options", {}) or {}

    viewport = _parse_viewport(opts.get("viewport") or env.get("VIEWPORT", "1366x900"))

    variables = dict(scenario.get("variables", {}) or {})
    if isinstance(opts.get("variables"), dict):
        variables.update(opts["variables"])
    # ${RAND} for unique names/accounts
    variables.setdefault("RAND", _rand_token())

    proxy = None
    if env.get("PROXY_SERVER"):
        proxy = {"server": env["PROXY_SERVER"]}
        if env.get("PROXY_USERNAME"): proxy["username"] = env["PROXY_USERNAME"]
        if env.get("PROXY_PASSWORD"): proxy["password"] = env["PROXY_PASSWORD"]

    return {
        "headful": _flag(opts.get("headful", env.get("HEADFUL", "0"))),
        "browser": str(opts.get("browser", env.get("BROWSER", "chromium"))).lower(),
        "timeout_ms": int(opts.get("timeout_ms", env.get("TIMEOUT_MS", 7000))),
        "settle_timeout_ms": int(opts.get("settle_timeout_ms", env.get("SETTLE_TIMEOUT_MS", 5000))),
        "viewport": viewport,
        "user_agent": opts.get("user_agent") or env.get("USER_AGENT"),
        "slow_mo": int(opts.get("slow_mo", env.get("SLOW_MO", 0))),
        "proxy": proxy,
        "variables": variables,
        "cache_dir": str(opts.get("cache_dir") or env.get("ACT_CACHE_DIR", ".act_cache")),
        "cache_disabled": _flag(opts.get("cache_disabled", env.get("ACT_CACHE_DISABLED", "0"))),
        "ollama_host": str(opts.get("ollama_host") or env.get("OLLAMA_HOST", "http://localhost:11434")),
        "ollama_model": str(opts.get("ollama_model") or env.get("OLLAMA_MODEL", "llama3")),
        "oracle_timeout_s": int(opts.get("oracle_timeout_s", env.get("ORACLE_TIMEOUT_S", 60))),
        "session_id": str(opts.get("session_id") or env.get("ACT_SESSION_ID") or uuid.uuid4().hex),
    }

def resolve_url(base_url: Optional[str], sel: str) -> str:
    if not sel: return ""
    if sel.startswith("http://") or sel.startswith("https://"):
        return sel
    if base_url:
        if sel.startswith("/"): return base_url.rstrip("/") + sel
        return base_url.rstrip("/") + "/" + sel.lstrip("/")
    return sel

def substitute_vars(value: Any, variables: dict):
    if not isinstance(value, str): return value
    out = value
    for k, v in (variables or {}).items():
        out = out.replace(f"${{{k}}}", str(v))
    return out
