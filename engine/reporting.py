# engine/reporting.py
from __future__ import annotations
import json, time
from pathlib import Path
from typing import Dict, Any, Optional

def start_run(name: str, base_url: Optional[str], browser: str, session_id: str) -> Dict[str, Any]:
    return {
        "name": name,
        "base_url": base_url,
        "browser": browser,
        "session_id": session_id,
        "started": time.time(),
        "steps": [],
        "artifacts": [],
        "status": "running",
        "error": None,
    }

def record_step(results: Dict[str, Any], idx: int, kind: str, instruction: Any) -> Dict[str, Any]:
    rec = {
        "index": idx,
        "kind": kind,
        "instruction": instruction,
        "key": None,
        "outcome": None,
        "started": time.time(),
        "ended": None,
        "status": "running",
        "error": None,
        "continue_on_fail": False,
    }
    results["steps"].append(rec)
    return rec

def finish_step(rec: Dict[str, Any], status: str = "passed", error: Optional[str] = None) -> None:
    rec["ended"] = time.time()
    rec["status"] = status
    if error:
        rec["error"] = error

def attach_artifact(results: Dict[str, Any], kind: str, path: Path) -> None:
    results["artifacts"].append({"type": kind, "path": str(path)})

def finalize_run(results: Dict[str, Any], status: str, error: Optional[str], started_ts: float, reports_dir: Path) -> None:
    results["status"] = status
    results["error"]  = error
    results["duration_s"] = round(time.time() - started_ts, 3)
    reports_dir.mkdir(parents=True, exist_ok=True)

    txt_lines = [
        f"Run: {results['name']}",
        f"Base URL: {results.get('base_url')}",
        f"Browser: {results['browser']} | Session: {results['session_id']}",
        f"Status: {results['status']}",
        f"Error: {results['error'] or '-'}",
        f"Duration: {results['duration_s']:.2f}s",
        "",
        "Steps:"
    ]
    for s in results["steps"]:
        dur = (s["ended"] or time.time()) - s["started"]
        key = (s.get("key") or "-")[:12]
        txt_lines.append(
            f"  [{s['index']}] {s['kind']}  ({dur:.2f}s)  -> {s['status']}  "
            f"outcome={s.get('outcome') or '-'} key={key} {s.get('instruction')!r}"
        )
        if s.get("error"):
            txt_lines.append(f"       error: {s['error']}")
    for a in results["artifacts"]:
        txt_lines.append(f"Artifact [{a['type']}]: {a['path']}")
    (reports_dir / "report_summary.txt").write_text("\n".join(txt_lines), encoding="utf-8")
    (reports_dir / "report.json").write_text(json.dumps(results, ensure_ascii=False, indent=2), encoding="utf-8")
