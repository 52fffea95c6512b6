"""High-level async client for the logging backend."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

import aiohttp

from n26a_bt._transport import JsonTransport, Transport
from n26a_bt.auth import AuthClient
from n26a_bt.config import N26aConfig
from n26a_bt.credentials import CredentialStore
from n26a_bt.exceptions import N26aAuthError, N26aCredentialStoreError, N26aError
from n26a_bt.models.credential import Credential, is_expired
from n26a_bt.models.snapshot import ScanSnapshot
from n26a_bt.reporter import LogReporter

_logger = logging.getLogger(__name__)

LoginProvider = Callable[[], tuple[str, str]]


class N26aClient:
    """Credential lifecycle plus occupancy reporting.

    Usage::

        async with N26aClient(config) as client:
            await client.ensure_credential()
            await client.report(snapshot, cycle_index)
    """

    def __init__(
        self,
        config: N26aConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
        store: CredentialStore | None = None,
        login_provider: LoginProvider | None = None,
    ) -> None:
        self._config = config
        self._login_provider = login_provider
        self._login_fields: tuple[str, str] | None = None
        if config.has_login:
            self._login_fields = (config.user_id, config.password)
        self._external_session = session is not None
        self._http_session = session
        self._custom_transport = transport
        self._transport: Transport | None = transport
        if store is None:
            dirs = [Path(config.credential_dir)] if config.credential_dir else None
            store = CredentialStore(dirs)
        self._store = store
        self._credential: Credential | None = None
        self._refresh_lock = asyncio.Lock()
        self._auth: AuthClient | None = None
        self._reporter: LogReporter | None = None
        if transport is not None:
            self._wire(transport)

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> N26aClient:
        if self._custom_transport is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._wire(JsonTransport(self._http_session))
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        if self._custom_transport is None:
            self._transport = None
            self._auth = None
            self._reporter = None

    def _wire(self, transport: Transport) -> None:
        self._transport = transport
        self._auth = AuthClient(transport, self._config.auth_url, timeout=self._config.report_timeout)
        self._reporter = LogReporter(
            transport,
            self._config.log_url,
            source_type_id=self._config.source_type_id,
            timeout=self._config.report_timeout,
        )

    # ------------------------------------------------------------------
    # Credential lifecycle
    # ------------------------------------------------------------------

    @property
    def credential(self) -> Credential | None:
        return self._credential

    @property
    def store(self) -> CredentialStore:
        return self._store

    async def ensure_credential(self) -> Credential:
        """Return a usable credential, logging in only when necessary.

        Order: the in-memory credential, then the on-disk cache, then a
        fresh login (which is persisted best-effort).

        Raises
        ------
        N26aAuthError
            If a login was needed and failed.
        """
        async with self._refresh_lock:
            if self._credential is not None and not is_expired(self._credential):
                return self._credential

            cached = self._store.load()
            if cached is not None and not is_expired(cached):
                _logger.info("Reusing cached credential")
                self._credential = cached
                return cached
            _logger.info("Token expired or missing, logging in")

            credential = await self._login()
            try:
                self._store.save(credential)
            except N26aCredentialStoreError as exc:
                _logger.warning("Failed to save credential: %s", exc)

            self._credential = credential
            return credential

    def invalidate_credential(self) -> None:
        """Drop the in-memory credential (the next call re-checks cache/login)."""
        self._credential = None

    async def _login(self) -> Credential:
        auth = self._require_auth()
        user_id, password = await self._resolve_login_fields()
        return await auth.login(user_id, password)

    async def _resolve_login_fields(self) -> tuple[str, str]:
        """Configured login fields, else ask *login_provider* once and remember the answer."""
        if self._login_fields is None and self._login_provider is not None:
            try:
                self._login_fields = await asyncio.to_thread(self._login_provider)
            except (EOFError, OSError) as exc:
                raise N26aAuthError(
                    f"Could not read login credentials: {exc!r}", reason=N26aAuthError.REJECTED
                ) from exc

        if self._login_fields is None or not all(self._login_fields):
            raise N26aAuthError("No login credentials configured", reason=N26aAuthError.REJECTED)
        return self._login_fields

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    async def report(self, snapshot: ScanSnapshot, cycle_index: int) -> None:
        """Report *snapshot* for the configured location.

        Raises
        ------
        N26aError
            :class:`N26aAuthError` when no valid credential can be
            obtained, :class:`N26aReportError` when delivery fails.
        """
        credential = await self.ensure_credential()
        reporter = self._require_reporter()
        await reporter.report(snapshot, self._config.location_id, cycle_index, credential)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_auth(self) -> AuthClient:
        if self._auth is None:
            raise N26aError("Client not initialized. Use 'async with N26aClient(...) as client:'")
        return self._auth

    def _require_reporter(self) -> LogReporter:
        if self._reporter is None:
            raise N26aError("Client not initialized. Use 'async with N26aClient(...) as client:'")
        return self._reporter
