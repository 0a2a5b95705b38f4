from pathlib import Path
import argparse
import logging

from dotenv import load_dotenv

from engine.runner import run_scenario

def main():
    load_dotenv()
    ap = argparse.ArgumentParser(description="Instruction runner (YAML + Playwright)")
    ap.add_argument("scenario", help="Path to YAML scenario")
    args = ap.parse_args()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    code = run_scenario(Path(args.scenario))
    raise SystemExit(code)

if __name__ == "__main__":
    main()
