"""Declarative provisioning of OSAC clusters, compute instances, hosts and host pools."""

__version__ = "0.1.0"
