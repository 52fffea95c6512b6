from __future__ import annotations

from typing import Any

import pytest

from n26a_bt import cli
from n26a_bt.cli import resolve_location_id, resolve_login
from n26a_bt.config import N26aConfig


def _no_prompt(_message: str) -> str:
    raise AssertionError("should not prompt")


def test_location_flag_wins() -> None:
    assert resolve_location_id(7, {"N26A_BT_LOCATE_ID": "9"}, _no_prompt) == 7


def test_location_from_env() -> None:
    assert resolve_location_id(-1, {"N26A_BT_LOCATE_ID": "9"}, _no_prompt) == 9


@pytest.mark.parametrize("env_value", ["", "abc", "-1"])
def test_location_prompted_when_env_unusable(env_value: str) -> None:
    assert resolve_location_id(-1, {"N26A_BT_LOCATE_ID": env_value}, lambda _m: " 21 ") == 21


def test_invalid_prompt_answer_keeps_default() -> None:
    assert resolve_location_id(-1, {}, lambda _m: "twenty") == -1


def test_login_from_env_does_not_prompt() -> None:
    env = {"N26A_BT_USERID": "alice", "N26A_BT_PASS": "pw"}
    assert resolve_login(env, _no_prompt, _no_prompt) == ("alice", "pw")


def test_login_prompts_for_missing_fields() -> None:
    prompts: list[str] = []

    def ask(message: str) -> str:
        prompts.append(message)
        return "bob"

    def ask_secret(message: str) -> str:
        prompts.append(message)
        return "hunter2"

    assert resolve_login({}, ask, ask_secret) == ("bob", "hunter2")
    assert prompts == ["User ID: ", "Password: "]


def test_password_only_prompted_when_missing() -> None:
    assert resolve_login({"N26A_BT_PASS": "pw"}, lambda _m: "carol", _no_prompt) == ("carol", "pw")


def test_main_defers_login_prompt_until_login_is_needed(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("N26A_BT_USERID", raising=False)
    monkeypatch.delenv("N26A_BT_PASS", raising=False)
    monkeypatch.setattr("builtins.input", _no_prompt)
    monkeypatch.setattr("getpass.getpass", _no_prompt)
    captured: dict[str, Any] = {}

    async def fake_run(config: N26aConfig, *, login_provider: Any = None) -> None:
        captured["config"] = config
        captured["login_provider"] = login_provider

    monkeypatch.setattr(cli, "run", fake_run)

    assert cli.main(["--locate", "4"]) == 0
    assert captured["config"].location_id == 4
    assert not captured["config"].has_login
    assert callable(captured["login_provider"])


def test_main_skips_login_provider_when_env_has_login(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("N26A_BT_USERID", "alice")
    monkeypatch.setenv("N26A_BT_PASS", "pw")
    captured: dict[str, Any] = {}

    async def fake_run(config: N26aConfig, *, login_provider: Any = None) -> None:
        captured["login_provider"] = login_provider

    monkeypatch.setattr(cli, "run", fake_run)

    assert cli.main(["--locate", "4"]) == 0
    assert captured["login_provider"] is None
