"""On-disk credential cache.

The cached credential lives in ``<dir>/credentials.json`` as
``{"token": ..., "exp": ...}``. Candidate directories are the per-user
cache directory, then the per-user config directory.
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
import sys
import tempfile
from collections.abc import Iterable
from pathlib import Path

from pydantic import ValidationError

from n26a_bt._constants import APP_NAME, CREDENTIALS_FILENAME
from n26a_bt.exceptions import N26aCredentialStoreError
from n26a_bt.models.credential import Credential

_logger = logging.getLogger(__name__)


def _home() -> Path | None:
    home = os.environ.get("HOME") or os.environ.get("USERPROFILE")
    return Path(home) if home else None


def user_cache_dir() -> Path | None:
    """Per-user cache root, or ``None`` if it cannot be determined."""
    if sys.platform == "win32":
        local = os.environ.get("LOCALAPPDATA")
        return Path(local) if local else None
    if sys.platform == "darwin":
        home = _home()
        return home / "Library" / "Caches" if home else None
    xdg = os.environ.get("XDG_CACHE_HOME")
    if xdg and os.path.isabs(xdg):
        return Path(xdg)
    home = _home()
    return home / ".cache" if home else None


def user_config_dir() -> Path | None:
    """Per-user config root, or ``None`` if it cannot be determined."""
    if sys.platform == "win32":
        roaming = os.environ.get("APPDATA")
        return Path(roaming) if roaming else None
    if sys.platform == "darwin":
        home = _home()
        return home / "Library" / "Application Support" if home else None
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg and os.path.isabs(xdg):
        return Path(xdg)
    home = _home()
    return home / ".config" if home else None


def default_credential_dirs() -> list[Path]:
    dirs: list[Path] = []
    for root in (user_cache_dir(), user_config_dir()):
        if root is not None:
            dirs.append(root / APP_NAME)
    return dirs


class CredentialStore:
    """Load and persist the bearer credential.

    Parameters
    ----------
    directories : iterable of Path, optional
        Candidate directories in order of preference. Defaults to the
        platform cache directory followed by the config directory. An
        empty list disables persistence.
    """

    def __init__(self, directories: Iterable[Path] | None = None) -> None:
        if directories is None:
            self._directories = default_credential_dirs()
        else:
            self._directories = [Path(d) for d in directories]

    @property
    def directories(self) -> list[Path]:
        return list(self._directories)

    def load(self) -> Credential | None:
        """Return the first well-formed cached credential, if any.

        Missing files, unreadable files and malformed content are all
        treated as "nothing cached".
        """
        for directory in self._directories:
            credential = self._load_from(directory / CREDENTIALS_FILENAME)
            if credential is not None:
                _logger.info("Found cached credential in %s", directory)
                return credential
        _logger.info("No cached credential found")
        return None

    def _load_from(self, path: Path) -> Credential | None:
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as exc:
            _logger.warning("Cannot read cached credential %s: %s", path, exc)
            return None

        try:
            return Credential.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError):
            _logger.warning("Ignoring malformed cached credential %s", path)
            return None

    def save(self, credential: Credential) -> Path:
        """Persist *credential* to the first writable candidate directory.

        Returns the written path.

        Raises
        ------
        N26aCredentialStoreError
            If no candidate directory accepted the file.
        """
        data = json.dumps({"token": credential.token, "exp": credential.exp})
        errors: list[str] = []
        for directory in self._directories:
            try:
                path = self._save_to(directory, data)
            except OSError as exc:
                _logger.debug("Cannot persist credential to %s", directory, exc_info=True)
                errors.append(f"{directory}: {exc}")
                continue
            _logger.info("Credential saved to %s", path)
            return path

        if not errors:
            raise N26aCredentialStoreError("No credential directory available")
        raise N26aCredentialStoreError("Failed to save credential: " + "; ".join(errors))

    @staticmethod
    def _save_to(directory: Path, data: str) -> Path:
        directory.mkdir(mode=0o700, parents=True, exist_ok=True)
        target = directory / CREDENTIALS_FILENAME

        fd, tmp_name = tempfile.mkstemp(prefix=".credentials-", suffix=".tmp", dir=directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(data)
                fh.flush()
                os.fsync(fh.fileno())
            os.chmod(tmp_name, 0o600)
            os.replace(tmp_name, target)
        except BaseException:
            with contextlib.suppress(OSError):
                os.unlink(tmp_name)
            raise
        return target
