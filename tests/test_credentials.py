from __future__ import annotations

import json
import os
import stat
import sys
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from n26a_bt.credentials import CredentialStore, user_cache_dir, user_config_dir
from n26a_bt.exceptions import N26aCredentialStoreError
from n26a_bt.models.credential import Credential, is_expired, parse_expiry

_NOW = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


def _credential(exp: str = "2026-01-01T13:00:00Z") -> Credential:
    return Credential(token="tok-123", exp=exp)


def test_is_expired_boundaries() -> None:
    assert is_expired(_credential("2026-01-01T12:00:00Z"), _NOW) is True
    assert is_expired(_credential("2026-01-01T11:59:59Z"), _NOW) is True
    assert is_expired(_credential("2026-01-01T12:00:01Z"), _NOW) is False


def test_is_expired_unparseable_is_expired() -> None:
    assert is_expired(_credential("not-a-date"), _NOW) is True
    # no offset: cannot be placed on the timeline
    assert is_expired(_credential("2099-01-01T00:00:00"), _NOW) is True


def test_parse_expiry_normalizes_offset_to_utc() -> None:
    parsed = parse_expiry("2026-01-01T21:00:00+09:00")
    assert parsed == datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


def test_credential_rejects_empty_fields() -> None:
    with pytest.raises(ValueError):
        Credential(token="", exp="2026-01-01T13:00:00Z")


def test_credential_repr_hides_token() -> None:
    assert "tok-123" not in repr(_credential())


def test_load_missing_returns_none(tmp_path: Path) -> None:
    store = CredentialStore([tmp_path / "cache", tmp_path / "config"])
    assert store.load() is None


@pytest.mark.parametrize(
    "content",
    [
        "{not json",
        json.dumps(["token", "exp"]),
        json.dumps({"token": "abc"}),
        json.dumps({"token": "", "exp": "2026-01-01T13:00:00Z"}),
    ],
)
def test_load_malformed_returns_none(tmp_path: Path, content: str) -> None:
    (tmp_path / "credentials.json").write_text(content, encoding="utf-8")
    assert CredentialStore([tmp_path]).load() is None


def test_save_then_load(tmp_path: Path) -> None:
    store = CredentialStore([tmp_path / "cache" / "n26a-bt"])
    path = store.save(_credential())

    assert path == tmp_path / "cache" / "n26a-bt" / "credentials.json"
    assert json.loads(path.read_text(encoding="utf-8")) == {"token": "tok-123", "exp": "2026-01-01T13:00:00Z"}
    assert store.load() == _credential()


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
def test_save_uses_private_permissions(tmp_path: Path) -> None:
    directory = tmp_path / "private"
    path = CredentialStore([directory]).save(_credential())

    assert stat.S_IMODE(os.stat(path).st_mode) == 0o600
    assert stat.S_IMODE(os.stat(directory).st_mode) == 0o700
    assert [p.name for p in directory.iterdir()] == ["credentials.json"]


def test_save_falls_back_to_second_directory(tmp_path: Path) -> None:
    blocker = tmp_path / "cache"
    blocker.write_text("a file, not a directory", encoding="utf-8")
    config_dir = tmp_path / "config"

    store = CredentialStore([blocker / "n26a-bt", config_dir])
    path = store.save(_credential())

    assert path.parent == config_dir
    assert store.load() == _credential()


def test_save_without_directories_raises(tmp_path: Path) -> None:
    with pytest.raises(N26aCredentialStoreError):
        CredentialStore([]).save(_credential())


def test_load_prefers_cache_over_config(tmp_path: Path) -> None:
    cache, config = tmp_path / "cache", tmp_path / "config"
    CredentialStore([config]).save(Credential(token="from-config", exp="2026-01-01T13:00:00Z"))
    CredentialStore([cache]).save(Credential(token="from-cache", exp="2026-01-01T13:00:00Z"))

    loaded = CredentialStore([cache, config]).load()
    assert loaded is not None
    assert loaded.token == "from-cache"


@pytest.mark.skipif(sys.platform in ("win32", "darwin"), reason="XDG layout")
def test_platform_dirs_follow_xdg(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "xc"))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xf"))
    assert user_cache_dir() == tmp_path / "xc"
    assert user_config_dir() == tmp_path / "xf"

    monkeypatch.delenv("XDG_CACHE_HOME")
    monkeypatch.setenv("HOME", str(tmp_path))
    assert user_cache_dir() == tmp_path / ".cache"


def test_is_expired_defaults_to_current_time() -> None:
    future = (datetime.now(UTC) + timedelta(hours=1)).isoformat()
    past = (datetime.now(UTC) - timedelta(seconds=1)).isoformat()
    assert is_expired(_credential(future)) is False
    assert is_expired(_credential(past)) is True
