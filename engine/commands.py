# engine/commands.py
from __future__ import annotations
import json
from typing import Any, Dict, List, Tuple, Union

from pydantic import AliasChoices, BaseModel, Field, ValidationError, field_validator, model_validator

from engine.exceptions import CommandValidationError

# -----------------------------------------------------
# Closed set of interaction primitives -> argument types
# -----------------------------------------------------
PRIMITIVE_SIGNATURES: Dict[str, Tuple[type, ...]] = {
    # pointer
    "click": (),
    "dblclick": (),
    "hover": (),
    "focus": (),
    "check": (),
    "uncheck": (),
    "scroll_into_view": (),

    # form / keyboard
    "clear": (),
    "fill": (str,),
    "type": (str,),
    "press": (str,),
    "select_option": (str,),
}

# names oracles tend to emit for the same primitive
METHOD_ALIASES = {
    "double_click": "dblclick",
    "dblClick": "dblclick",
    "selectOption": "select_option",
    "select": "select_option",
    "pressSequentially": "type",
    "press_sequentially": "type",
    "scrollIntoViewIfNeeded": "scroll_into_view",
    "scroll_into_view_if_needed": "scroll_into_view",
}

ArgValue = Union[str, int, float, bool]


class Command(BaseModel):
    """
    One interaction: target (snapshot element id or locator string),
    primitive name and its positional args.
    """
    target: Union[int, str] = Field(validation_alias=AliasChoices("target", "element", "locator"))
    method: str
    args: List[ArgValue] = Field(default_factory=list)

    @field_validator("target", mode="before")
    @classmethod
    def _coerce_target(cls, v: Any) -> Any:
        if isinstance(v, bool):
            raise ValueError("target must be an element id or a locator string")
        if isinstance(v, str) and v.strip().isdigit():
            return int(v.strip())
        if isinstance(v, str) and not v.strip():
            raise ValueError("target must not be empty")
        return v

    @field_validator("method", mode="before")
    @classmethod
    def _canonical_method(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip()
            return METHOD_ALIASES.get(v, v)
        return v

    @field_validator("args", mode="before")
    @classmethod
    def _listify_args(cls, v: Any) -> Any:
        if v is None:
            return []
        return v

    @model_validator(mode="after")
    def _check_signature(self) -> "Command":
        sig = PRIMITIVE_SIGNATURES.get(self.method)
        if sig is None:
            raise ValueError(f"unknown interaction primitive {self.method!r}")
        if len(self.args) != len(sig):
            raise ValueError(f"{self.method!r} takes {len(sig)} argument(s), got {len(self.args)}")
        for i, (arg, kind) in enumerate(zip(self.args, sig)):
            if not isinstance(arg, kind):
                raise ValueError(f"{self.method!r} argument {i} must be {kind.__name__}, got {type(arg).__name__}")
        return self

    def to_record(self) -> Dict[str, Any]:
        return {"locator": self.target, "method": self.method, "args": list(self.args)}


def parse_commands(raw: Any) -> List[Command]:
    """
    Normalize a single command or a list of commands (dicts or a JSON string)
    into validated Command objects. Any invalid entry rejects the whole batch.
    """
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as e:
            raise CommandValidationError(f"Command payload is not JSON: {e}") from e
    items = raw if isinstance(raw, list) else [raw]
    if not items:
        raise CommandValidationError("Command list is empty")

    out: List[Command] = []
    for i, item in enumerate(items):
        if isinstance(item, Command):
            out.append(item)
            continue
        if not isinstance(item, dict):
            raise CommandValidationError(f"Command {i} must be an object, got {type(item).__name__}")
        try:
            out.append(Command.model_validate(item))
        except ValidationError as e:
            raise CommandValidationError(f"Command {i} is invalid: {e}") from e
    return out


def dump_commands(commands: List[Command]) -> str:
    return json.dumps([c.to_record() for c in commands], ensure_ascii=False)
