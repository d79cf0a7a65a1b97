"""Kubernetes object generation, pod identities, placement instances and
service management for M3DB clusters."""

__version__ = "0.1.0"