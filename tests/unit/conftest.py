"""Shared fixtures for unit tests."""

from __future__ import annotations

from typing import TYPE_CHECKING
from unittest.mock import MagicMock

import pytest

from osac_provisioner.config import load
from osac_provisioner.core.provider import OSACProvider
from osac_provisioner.core.service import Metadata, RemoteObject, RemoteStatus
from osac_provisioner.engine import waiter
from osac_provisioner.engine.handlers import EngineContext
from osac_provisioner.engine.waiter import WaitOptions

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from osac_provisioner.config.schema import Config

_OSAC_ENV_VARS = ("OSAC_ENDPOINT", "OSAC_TOKEN", "OSAC_INSECURE", "OSAC_PLAINTEXT", "OSAC_LOG")


@pytest.fixture(autouse=True)
def _clean_osac_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove OSAC_* env vars so unit tests don't leak endpoint config."""
    for var in _OSAC_ENV_VARS:
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def make_config(tmp_path: Path) -> Callable[..., Config]:
    """Factory fixture: write YAML + optional .env, return loaded Config."""

    def _make(yaml_str: str, *, dotenv: str | None = None) -> Config:
        (tmp_path / "config.yaml").write_text(yaml_str)
        if dotenv is not None:
            (tmp_path / ".env").write_text(dotenv)
        return load(tmp_path / "config.yaml")

    return _make


def _remote(
    object_id: str = "obj-1",
    state: str | None = None,
    *,
    name: str = "",
    spec: dict | None = None,
    **status_fields: object,
) -> RemoteObject:
    """Build a remote object; ``state=None`` with no status fields means no status yet."""
    status = None
    if state is not None or status_fields:
        status = RemoteStatus(state=state or "", **status_fields)
    return RemoteObject(
        id=object_id,
        metadata=Metadata(name=name),
        spec=spec or {},
        status=status,
    )


@pytest.fixture
def make_remote() -> Callable[..., RemoteObject]:
    """Factory fixture for remote objects as the fulfillment service reports them."""
    return _remote


@pytest.fixture
def mock_client() -> MagicMock:
    return MagicMock()


@pytest.fixture
def no_sleep(monkeypatch: pytest.MonkeyPatch) -> list[float]:
    """Make the poll engine return from sleeps immediately; records each delay."""
    delays: list[float] = []

    def _sleep(delay: float, cancel: object) -> bool:
        _ = cancel
        delays.append(delay)
        return False

    monkeypatch.setattr(waiter, "_sleep", _sleep)
    return delays


@pytest.fixture
def ctx(mock_client: MagicMock, no_sleep: list[float]) -> EngineContext:
    _ = no_sleep
    provider = OSACProvider.from_client(mock_client)
    return EngineContext(
        provider=provider,
        wait=WaitOptions(
            create_timeout=60, update_timeout=30, poll_interval=2, min_poll_interval=1
        ),
    )
