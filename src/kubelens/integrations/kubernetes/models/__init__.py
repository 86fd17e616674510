"""Resource models and display views."""

from kubelens.integrations.kubernetes.models.base import Resource, ResourceRef, format_age
from kubelens.integrations.kubernetes.models.views import (
    ConfigMapView,
    ContainerView,
    ContextView,
    NamespaceView,
    PodView,
    ResourceView,
    SecretView,
    ServicePortView,
    ServiceView,
)

__all__ = [
    "ConfigMapView",
    "ContainerView",
    "ContextView",
    "NamespaceView",
    "PodView",
    "Resource",
    "ResourceRef",
    "ResourceView",
    "SecretView",
    "ServicePortView",
    "ServiceView",
    "format_age",
]
