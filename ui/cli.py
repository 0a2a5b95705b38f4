import argparse
import json
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from engine.cache import ACTIONS, NAMESPACES, CacheEntry, ResolutionCache
from engine.commands import dump_commands, parse_commands
from engine.config import load_options
from engine.exceptions import CommandValidationError, ResolutionError
from engine.keys import derive_key
from engine.runner import run_scenario

logger = logging.getLogger("act_runner")


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _cache_from_env() -> ResolutionCache:
    opts = load_options()
    return ResolutionCache(opts["cache_dir"], disabled=opts["cache_disabled"])


def cmd_run(args) -> int:
    overrides = {}
    if args.no_cache:
        overrides["cache_disabled"] = True
    if args.headful:
        overrides["headful"] = True
    if args.session_id:
        overrides["session_id"] = args.session_id
    return run_scenario(Path(args.scenario), overrides=overrides, reports_dir=Path(args.reports_dir))


def cmd_cache_show(args) -> int:
    cache = _cache_from_env()
    for ns in ([args.namespace] if args.namespace else NAMESPACES):
        table = cache.load(ns)
        print(f"== {ns} ({len(table)})")
        for key, entry in table.items():
            print(f"{key}  session={entry.session_id or '-'}  {entry.result}")
    return 0


def cmd_cache_clear(args) -> int:
    _cache_from_env().clear(args.namespace)
    return 0


def cmd_cache_pin(args) -> int:
    """
    Store a reviewed command list for an instruction in the action cache.
    Targets must be locator strings (e.g. "xpath=//button[@id='submit']").
    """
    try:
        raw = json.loads(Path(args.commands).read_text(encoding="utf-8"))
    except OSError as e:
        raise CommandValidationError(f"Cannot read commands file {args.commands}: {e}") from e
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise CommandValidationError(f"Commands file {args.commands} is not valid JSON: {e}") from e
    commands = parse_commands(raw)
    for c in commands:
        if not isinstance(c.target, str):
            raise ResolutionError(f"Pinned commands need locator targets, got element id {c.target}")
    cache = _cache_from_env()
    key = derive_key(args.instruction)
    entry = CacheEntry(result=dump_commands(commands), session_id=args.session_id or "pinned")
    if not cache.write(ACTIONS, key, entry):
        logger.warning("[cache] cache is disabled (ACT_CACHE_DISABLED); %s was not pinned", key[:12])
        return 1
    print(key)
    return 0


def build_argparser():
    ap = argparse.ArgumentParser(description="Instruction runner (Playwright + Ollama) with resolution cache")
    ap.add_argument("--verbose", "-v", action="store_true", help="Debug logging, including DOM enumerations")
    sub = ap.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Run a YAML scenario of goto/act/observe/wait steps")
    run.add_argument("scenario", help="Path to YAML scenario")
    run.add_argument("--verbose", "-v", action="store_true", default=argparse.SUPPRESS, help="Debug logging")
    run.add_argument("--no-cache", action="store_true", help="Bypass the resolution cache")
    run.add_argument("--headful", action="store_true")
    run.add_argument("--session-id", default=None)
    run.add_argument("--reports-dir", default="reports")
    run.set_defaults(func=cmd_run)

    cache = sub.add_parser("cache", help="Inspect or administer the resolution cache")
    cache_sub = cache.add_subparsers(dest="cache_command", required=True)

    show = cache_sub.add_parser("show")
    show.add_argument("--namespace", choices=NAMESPACES, default=None)
    show.set_defaults(func=cmd_cache_show)

    clear = cache_sub.add_parser("clear")
    clear.add_argument("--namespace", choices=NAMESPACES, default=None)
    clear.set_defaults(func=cmd_cache_clear)

    pin = cache_sub.add_parser("pin", help="Pin a reviewed command list for an instruction")
    pin.add_argument("instruction")
    pin.add_argument("commands", help="JSON file with one command or a list of commands")
    pin.add_argument("--session-id", default=None)
    pin.set_defaults(func=cmd_cache_pin)
    return ap


def main(argv=None):
    load_dotenv()
    args = build_argparser().parse_args(argv)
    _setup_logging(args.verbose)
    try:
        code = args.func(args)
    except ResolutionError as e:
        logger.error("%s", e)
        code = 2
    raise SystemExit(code)


if __name__ == "__main__":
    main(sys.argv[1:])
