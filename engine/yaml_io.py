from __future__ import annotations
from pathlib import Path
from typing import Any

import yaml

from engine.exceptions import ScenarioValidationError

def read_yaml(path: Path) -> Any:
    try:
        return yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ScenarioValidationError(f"Scenario file not found: {path}") from e
    except yaml.YAMLError as e:
        raise ScenarioValidationError(f"Scenario {path} is not valid YAML: {e}") from e
