"""Tests for read-only object lookups."""

from __future__ import annotations

from typing import TYPE_CHECKING
from unittest.mock import MagicMock

import pytest

from osac_provisioner.core import OSACProvider
from osac_provisioner.core.client import NotFoundError
from osac_provisioner.core.service import RemoteObject
from osac_provisioner.engine.data_sources import (
    DATA_SOURCES,
    KINDS,
    UnknownDataSourceError,
    read_data_source,
)
from osac_provisioner.engine.errors import RemoteCallFailed

if TYPE_CHECKING:
    from collections.abc import Callable

INT64_URL = "type.googleapis.com/google.protobuf.Int64Value"


@pytest.fixture
def provider(mock_client: MagicMock) -> OSACProvider:
    return OSACProvider.from_client(mock_client)


def test_all_kinds_available() -> None:
    assert set(KINDS) == {
        "cluster",
        "cluster_template",
        "compute_instance",
        "compute_instance_template",
        "host",
        "host_class",
        "host_pool",
    }


def test_every_source_reports_id() -> None:
    for source in DATA_SOURCES.values():
        assert source.fields[0] == "id"


def test_cluster(
    provider: OSACProvider,
    mock_client: MagicMock,
    make_remote: Callable[..., RemoteObject],
) -> None:
    mock_client.clusters.get.return_value = make_remote(
        "c-1",
        "CLUSTER_STATE_READY",
        name="prod",
        spec={"template": "ocp"},
        api_url="https://api",
        console_url="https://console",
    )

    attrs = read_data_source(provider, "cluster", "c-1")

    mock_client.clusters.get.assert_called_once_with("c-1")
    assert attrs == {
        "id": "c-1",
        "name": "prod",
        "template": "ocp",
        "state": "CLUSTER_STATE_READY",
        "api_url": "https://api",
        "console_url": "https://console",
    }


def test_host(
    provider: OSACProvider,
    mock_client: MagicMock,
    make_remote: Callable[..., RemoteObject],
) -> None:
    mock_client.hosts.get.return_value = make_remote(
        "h-1",
        "HOST_STATE_READY",
        name="node1",
        spec={"power_state": "HOST_POWER_STATE_ON"},
        power_state="HOST_POWER_STATE_ON",
    )

    attrs = read_data_source(provider, "host", "h-1")

    assert attrs == {
        "id": "h-1",
        "name": "node1",
        "power_state": "ON",
        "state": "HOST_STATE_READY",
        "current_power_state": "ON",
    }


def test_catalog_kind(provider: OSACProvider, mock_client: MagicMock) -> None:
    mock_client.cluster_templates.get.return_value = RemoteObject.model_validate(
        {"id": "ocp_4_17_small", "title": "OpenShift 4.17", "description": "Small cluster"}
    )

    attrs = read_data_source(provider, "cluster_template", "ocp_4_17_small")

    assert attrs == {
        "id": "ocp_4_17_small",
        "title": "OpenShift 4.17",
        "description": "Small cluster",
    }


def test_catalog_kind_missing_fields(provider: OSACProvider, mock_client: MagicMock) -> None:
    mock_client.host_classes.get.return_value = RemoteObject(id="acme_1tb")
    assert read_data_source(provider, "host_class", "acme_1tb") == {
        "id": "acme_1tb",
        "title": None,
        "description": None,
    }


def test_unknown_kind(provider: OSACProvider) -> None:
    with pytest.raises(UnknownDataSourceError, match="cluster_template"):
        read_data_source(provider, "network", "n-1")


def test_not_found(provider: OSACProvider, mock_client: MagicMock) -> None:
    mock_client.host_pools.get.side_effect = NotFoundError("API error 404", status_code=404)
    with pytest.raises(RemoteCallFailed) as exc_info:
        read_data_source(provider, "host_pool", "p-404")
    assert isinstance(exc_info.value.cause, NotFoundError)


def test_cluster_ignores_template_parameters(
    provider: OSACProvider,
    mock_client: MagicMock,
    make_remote: Callable[..., RemoteObject],
) -> None:
    mock_client.clusters.get.return_value = make_remote(
        "c-1",
        "CLUSTER_STATE_READY",
        spec={
            "template": "ocp",
            "template_parameters": {
                "replicas": {"@type": INT64_URL, "value": "3"},
                "broken": {"@type": "type.googleapis.com/acme.Unknown", "value": "AA=="},
            },
        },
    )

    attrs = read_data_source(provider, "cluster", "c-1")

    assert attrs["template"] == "ocp"
    assert attrs["state"] == "CLUSTER_STATE_READY"
    assert "template_parameters" not in attrs


def test_compute_instance_ignores_template_parameters(
    provider: OSACProvider,
    mock_client: MagicMock,
    make_remote: Callable[..., RemoteObject],
) -> None:
    mock_client.compute_instances.get.return_value = make_remote(
        "vm-1",
        "COMPUTE_INSTANCE_STATE_READY",
        name="web",
        spec={
            "template": "small_vm",
            "template_parameters": {
                "cpus": {"@type": INT64_URL, "value": "4"}
            },
        },
        ip_address="10.0.0.7",
    )

    attrs = read_data_source(provider, "compute_instance", "vm-1")

    assert attrs == {
        "id": "vm-1",
        "name": "web",
        "template": "small_vm",
        "state": "COMPUTE_INSTANCE_STATE_READY",
        "ip_address": "10.0.0.7",
    }
