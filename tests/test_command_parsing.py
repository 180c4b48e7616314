import pytest

from rbac_console.commands.parsing import (
    first_payload,
    parse_command,
    parse_embedded_object,
    parse_loose_fields,
    strip_code_fences,
)
from rbac_console.schemas.command import CommandAction, ParsedCommand

CREATE_ADMIN = '{"action":"create_role","params":{"role_name":"admin","permission_name":null}}'


def test_fenced_json_parses_like_plain_json() -> None:
    fenced = f"```json\n{CREATE_ADMIN}\n```"

    assert parse_command(fenced) == parse_command(CREATE_ADMIN)
    assert parse_command(fenced).params.role_name == "admin"


def test_bare_fence_is_stripped() -> None:
    assert strip_code_fences(f"```\n{CREATE_ADMIN}\n```") == CREATE_ADMIN


def test_prose_around_object_is_recovered_by_brace_scan() -> None:
    raw = f"Sure! Here is the parsed command: {CREATE_ADMIN} Let me know if you need more."

    parsed = parse_command(raw)

    assert parsed.action is CommandAction.CREATE_ROLE
    assert parsed.params.role_name == "admin"
    assert parsed.params.permission_name is None


def test_embedded_object_tolerates_one_nesting_level() -> None:
    payload = parse_embedded_object(f"prefix {CREATE_ADMIN} suffix")

    assert payload == {
        "action": "create_role",
        "params": {"role_name": "admin", "permission_name": None},
    }


def test_loose_fields_recovered_by_regex() -> None:
    raw = 'action is "action": "create_role", and "role_name": "manager" (truncated'

    parsed = parse_command(raw)

    assert parsed.to_payload() == {
        "action": "create_role",
        "params": {"role_name": "manager", "permission_name": None},
    }


def test_loose_fields_need_action() -> None:
    assert parse_loose_fields('"role_name": "manager"') is None


def test_unparseable_output_degrades_to_unknown() -> None:
    parsed = parse_command("I am not sure what you mean.")

    assert parsed == ParsedCommand.unknown()
    assert parsed.to_payload() == {"action": "unknown", "params": {}}


def test_non_object_json_is_not_a_command() -> None:
    assert parse_command("[1, 2, 3]").action is CommandAction.UNKNOWN


def test_unrecognized_action_becomes_unknown() -> None:
    parsed = parse_command('{"action": "delete_everything", "params": {"role_name": "x"}}')

    assert parsed.action is CommandAction.UNKNOWN
    assert parsed.params.role_name == "x"


@pytest.mark.parametrize("value", ["null", "None", "  ", "undefined"])
def test_null_like_names_normalize_to_none(value: str) -> None:
    parsed = parse_command(
        '{"action": "create_role", "params": {"role_name": "%s"}}' % value
    )

    assert parsed.params.role_name is None


def test_action_is_case_insensitive() -> None:
    parsed = parse_command('{"action": " Create_Permission ", "params": {"permission_name": "edit"}}')

    assert parsed.action is CommandAction.CREATE_PERMISSION
    assert parsed.params.permission_name == "edit"


def test_first_successful_parser_wins() -> None:
    calls: list[str] = []

    def failing(text: str):
        calls.append("failing")
        raise ValueError("nope")

    def empty(text: str):
        calls.append("empty")
        return None

    def winning(text: str):
        calls.append("winning")
        return {"action": "unknown"}

    def never(text: str):  # pragma: no cover - must not be reached
        calls.append("never")
        return {}

    found = first_payload(
        "x",
        parsers=(("failing", failing), ("empty", empty), ("winning", winning), ("never", never)),
    )

    assert found == ("winning", {"action": "unknown"})
    assert calls == ["failing", "empty", "winning"]


@pytest.mark.parametrize(
    "raw",
    [
        "[" * 100000 + "]" * 100000,
        '{"a":' * 100000 + "1" + "}" * 100000,
    ],
)
def test_deeply_nested_output_degrades_to_unknown(raw: str) -> None:
    parsed = parse_command(raw)

    assert parsed.action is CommandAction.UNKNOWN
    assert parsed.params.role_name is None
