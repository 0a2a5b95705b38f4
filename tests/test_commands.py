import json

import pytest

from engine.commands import Command, dump_commands, parse_commands
from engine.exceptions import CommandValidationError


def test_single_command_is_normalized_to_list():
    cmds = parse_commands({"element": 7, "method": "click", "args": []})
    assert cmds == [Command(target=7, method="click", args=[])]


def test_list_and_json_string_inputs():
    raw = [
        {"element": "3", "method": "fill", "args": ["alice"]},
        {"element": 4, "method": "press", "args": ["Enter"]},
    ]
    cmds = parse_commands(json.dumps(raw))
    assert [c.target for c in cmds] == [3, 4]
    assert cmds[0].args == ["alice"]


def test_locator_targets_stay_strings():
    cmd = parse_commands({"locator": "xpath=//input[1]", "method": "fill", "args": ["x"]})[0]
    assert cmd.target == "xpath=//input[1]"


def test_method_aliases_map_to_known_primitives():
    assert parse_commands({"element": 1, "method": "selectOption", "args": ["US"]})[0].method == "select_option"
    assert parse_commands({"element": 1, "method": "pressSequentially", "args": ["hi"]})[0].method == "type"


def test_missing_args_means_no_args():
    assert parse_commands({"element": 1, "method": "hover"})[0].args == []


@pytest.mark.parametrize("raw", [
    {"element": 1, "method": "evaluate", "args": ["alert(1)"]},
    {"element": 1, "method": "click", "args": ["extra"]},
    {"element": 1, "method": "fill", "args": []},
    {"element": 1, "method": "fill", "args": [42]},
    {"element": True, "method": "click", "args": []},
    {"method": "click", "args": []},
    "not a command",
    [],
])
def test_invalid_commands_rejected(raw):
    with pytest.raises(CommandValidationError):
        parse_commands(raw if not isinstance(raw, str) else [raw])


def test_one_bad_command_rejects_the_batch():
    with pytest.raises(CommandValidationError):
        parse_commands([
            {"element": 1, "method": "click", "args": []},
            {"element": 2, "method": "teleport", "args": []},
        ])


def test_dump_uses_locator_records():
    cmds = [Command(target="xpath=//a", method="click", args=[])]
    assert json.loads(dump_commands(cmds)) == [{"locator": "xpath=//a", "method": "click", "args": []}]
