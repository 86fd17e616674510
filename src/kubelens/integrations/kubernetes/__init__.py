"""Kubernetes integration - kubectl client, resource kinds, and models."""

from kubelens.integrations.kubernetes.exceptions import (
    CommandCancelled,
    FetchFailed,
    KubectlNotFoundError,
    KubernetesError,
    MutationFailed,
    UnknownResource,
)
from kubelens.integrations.kubernetes.kinds import ResourceKind
from kubelens.integrations.kubernetes.kubectl_client import KubectlClient

__all__ = [
    "CommandCancelled",
    "FetchFailed",
    "KubectlClient",
    "KubectlNotFoundError",
    "KubernetesError",
    "MutationFailed",
    "ResourceKind",
    "UnknownResource",
]
