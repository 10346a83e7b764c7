"""Validation and marker behaviour of the OSAC resource models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from osac_provisioner.resources import (
    ClusterResource,
    ComputeInstanceResource,
    HostPoolResource,
    HostResource,
)
from osac_provisioner.resources.markers import (
    SpecParam,
    build_spec,
    collect_compare_strategies,
    collect_force_new,
    extract_spec_attrs,
)


class TestCluster:
    def test_address(self) -> None:
        assert ClusterResource(name="prod", template="ocp").address == "osac_cluster.prod"

    def test_defaults(self) -> None:
        cluster = ClusterResource(name="prod", template="ocp")
        assert cluster.template_parameters == {}
        assert cluster.node_sets == {}

    def test_template_required(self) -> None:
        with pytest.raises(ValidationError):
            ClusterResource(name="prod")  # type: ignore[call-arg]

    def test_empty_template_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ClusterResource(name="prod", template="")

    @pytest.mark.parametrize("name", ["has space", "dot.name", ""])
    def test_invalid_names(self, name: str) -> None:
        with pytest.raises(ValidationError):
            ClusterResource(name=name, template="ocp")

    @pytest.mark.parametrize(
        "node_set",
        [{"host_class": "", "size": 1}, {"host_class": "acme", "size": -1}, {"size": 1}],
    )
    def test_node_set_validation(self, node_set: dict[str, object]) -> None:
        with pytest.raises(ValidationError):
            ClusterResource.model_validate(
                {"name": "c", "template": "ocp", "node_sets": {"workers": node_set}}
            )

    def test_unknown_fields_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ClusterResource.model_validate({"name": "c", "template": "ocp", "size": 3})

    def test_markers(self) -> None:
        assert collect_force_new(ClusterResource) == {"template", "template_parameters"}
        assert collect_compare_strategies(ClusterResource) == {
            "template_parameters": "exact",
            "node_sets": "exact",
        }

    def test_build_spec(self) -> None:
        cluster = ClusterResource.model_validate(
            {
                "name": "prod",
                "template": "ocp",
                "template_parameters": {"k": "v"},
                "node_sets": {"workers": {"host_class": "acme", "size": 2}},
            }
        )
        assert build_spec(cluster) == {
            "template": "ocp",
            "node_sets": {"workers": {"host_class": "acme", "size": 2}},
        }

    def test_extract_spec_attrs_uses_defaults(self) -> None:
        assert extract_spec_attrs(ClusterResource, {"template": "ocp"}) == {
            "template": "ocp",
            "node_sets": {},
        }


class TestComputeInstance:
    def test_force_new(self) -> None:
        assert collect_force_new(ComputeInstanceResource) == {"template", "template_parameters"}

    def test_address(self) -> None:
        vm = ComputeInstanceResource(name="web", template="rhel")
        assert vm.address == "osac_compute_instance.web"


class TestHost:
    @pytest.mark.parametrize("power_state", ["ON", "OFF", None])
    def test_power_states(self, power_state: str | None) -> None:
        host = HostResource(name="n1", power_state=power_state)  # type: ignore[arg-type]
        assert host.power_state == power_state

    def test_invalid_power_state(self) -> None:
        with pytest.raises(ValidationError):
            HostResource(name="n1", power_state="STANDBY")  # type: ignore[arg-type]

    def test_nothing_forces_replacement(self) -> None:
        assert collect_force_new(HostResource) == set()


class TestHostPool:
    def test_priority_before_consumers(self) -> None:
        assert HostPoolResource.plan_priority < HostResource.plan_priority
        assert HostResource.plan_priority < ClusterResource.plan_priority

    def test_host_sets(self) -> None:
        pool = HostPoolResource.model_validate(
            {"name": "pool", "host_sets": {"gpu": {"host_class": "h100", "size": 4}}}
        )
        assert pool.host_sets["gpu"].size == 4
        assert build_spec(pool) == {"host_sets": {"gpu": {"host_class": "h100", "size": 4}}}


class TestSpecParam:
    def test_put_creates_nested_dicts(self) -> None:
        spec: dict[str, object] = {"network": {"mtu": 1500}}
        SpecParam("network.cidr").put(spec, "10.0.0.0/24")
        assert spec == {"network": {"mtu": 1500, "cidr": "10.0.0.0/24"}}

    def test_get_missing_returns_default(self) -> None:
        param = SpecParam("network.cidr")
        assert param.get({"network": {"cidr": "10.0.0.0/24"}}) == "10.0.0.0/24"
        assert param.get({"network": "flat"}, "none") == "none"
        assert param.get({}) is None
