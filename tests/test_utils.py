import pytest

from wpcomposer import utils


@pytest.mark.parametrize(
    "command, parts",
    [
        ("plugin install akismet --activate", ["plugin", "install", "akismet", "--activate"]),
        ("option update blogname 'My Site'", ["option", "update", "blogname", "My Site"]),
        (["theme", "delete", 3], ["theme", "delete", "3"]),
        ("   ", []),
        (None, []),
        ("unterminated 'quote", []),
        (42, []),
    ],
)
def test_normalize_wp_parts(command, parts) -> None:
    assert utils.normalize_wp_parts(command) == parts


@pytest.mark.parametrize(
    "text, expected",
    [
        ('\ufeff{"a": 1}', {"a": 1}),
        ('\x1b[1mnoise\x1b[0m [1, 2] more noise', [1, 2]),
        ("Deprecated: x\n{\"ok\": true}\n", {"ok": True}),
        ("nothing", "fallback"),
        (None, "fallback"),
    ],
)
def test_parse_json_relaxed(text, expected) -> None:
    assert utils.parse_json_relaxed(text, default="fallback") == expected


def test_status_lines_carry_run_id(monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    monkeypatch.setattr(utils, "_RUN_ID", "abcd1234")
    utils.status_pass("saved")
    utils.status_warn("skipped")
    utils.status_fail("broken")
    assert capsys.readouterr().out.splitlines() == [
        "PASS: saved [abcd1234]",
        "WARN: skipped [abcd1234]",
        "FAIL: broken [abcd1234]",
    ]


def test_require() -> None:
    assert utils.require(True, "fine") is True
    assert utils.require(False, "not fine", "warning") is False


def test_user_uid_unknown_user() -> None:
    assert utils.user_uid("") == -1
    assert utils.user_uid("no-such-user-wpcomposer") == -1
