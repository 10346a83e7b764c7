"""Fixtures for e2e tests against a live fulfillment service.

Run with ``pytest tests/e2e --e2e-endpoint https://...`` (or set
``OSAC_E2E_ENDPOINT``). Tests are skipped when no endpoint is configured.
"""

from __future__ import annotations

import contextlib
import logging
import os
from typing import TYPE_CHECKING, Any

import pytest
from pydantic import SecretStr

from osac_provisioner.config import apply, plan
from osac_provisioner.config.schema import Config, ProviderConfig, TimeoutsConfig
from osac_provisioner.core.provider import OSACProvider, TokenAuth
from osac_provisioner.engine.data_sources import read_data_source

if TYPE_CHECKING:
    from collections.abc import Callable, Generator
    from pathlib import Path

logger = logging.getLogger(__name__)


def pytest_addoption(parser: pytest.Parser) -> None:
    group = parser.getgroup("e2e", "OSAC fulfillment e2e test options")
    group.addoption(
        "--e2e-endpoint",
        default=None,
        help="Fulfillment API endpoint (default: OSAC_E2E_ENDPOINT env)",
    )
    group.addoption(
        "--e2e-host-class",
        default=None,
        help="Host class id used for host sets (default: OSAC_E2E_HOST_CLASS env)",
    )
    group.addoption(
        "--e2e-cluster-template",
        default=None,
        help="Cluster template id (default: OSAC_E2E_CLUSTER_TEMPLATE env)",
    )


def _option(request: pytest.FixtureRequest, name: str, env: str) -> str | None:
    return request.config.getoption(name) or os.environ.get(env)


@pytest.fixture(scope="session")
def osac_endpoint(request: pytest.FixtureRequest) -> str:
    endpoint = _option(request, "--e2e-endpoint", "OSAC_E2E_ENDPOINT")
    if not endpoint:
        pytest.skip("No fulfillment endpoint: pass --e2e-endpoint or set OSAC_E2E_ENDPOINT")
    return endpoint


@pytest.fixture(scope="session")
def osac_token() -> str | None:
    return os.environ.get("OSAC_E2E_TOKEN")


@pytest.fixture(scope="session")
def host_class(request: pytest.FixtureRequest) -> str:
    value = _option(request, "--e2e-host-class", "OSAC_E2E_HOST_CLASS")
    if not value:
        pytest.skip("No host class: pass --e2e-host-class or set OSAC_E2E_HOST_CLASS")
    return value


@pytest.fixture(scope="session")
def cluster_template(request: pytest.FixtureRequest) -> str:
    value = _option(request, "--e2e-cluster-template", "OSAC_E2E_CLUSTER_TEMPLATE")
    if not value:
        pytest.skip("No cluster template: pass --e2e-cluster-template")
    return value


@pytest.fixture(scope="session")
def provider(osac_endpoint: str, osac_token: str | None, host_class: str) -> OSACProvider:
    """Provider for direct API checks; skips the session if the service is unreachable."""
    auth = TokenAuth(token=SecretStr(osac_token)) if osac_token else None
    provider = OSACProvider(endpoint=osac_endpoint, auth=auth)
    try:
        read_data_source(provider, "host_class", host_class)
    except Exception as exc:
        pytest.skip(f"Fulfillment service not usable at {osac_endpoint}: {exc}")
    return provider


@pytest.fixture()
def make_config(
    osac_endpoint: str, osac_token: str | None, provider: OSACProvider, tmp_path: Path
) -> Generator[Callable[..., Config]]:
    """Config factory; everything left in a config's state is destroyed at teardown."""
    _ = provider
    made: list[Config] = []

    def _make(**resources: list[Any]) -> Config:
        config = Config(
            provider=ProviderConfig(endpoint=osac_endpoint, token=osac_token),
            state_path=tmp_path / f".state-{len(made)}.json",
            timeouts=TimeoutsConfig(create=1800, update=1800, poll_interval=10),
            **resources,
        )
        made.append(config)
        return config

    yield _make

    for config in reversed(made):
        with contextlib.suppress(Exception):
            leftover = plan(config, destroy=True)
            if leftover.actionable():
                logger.info("Cleaning up %d objects", len(leftover.actionable()))
                apply(leftover, config)
