"""Helm release service integration.

Drives the ``helm`` binary against a Kubernetes cluster selected through
the official kubernetes client.
"""

from helm_release_tasks.integrations.helm.client import HelmClient
from helm_release_tasks.integrations.helm.cluster import ClusterClient
from helm_release_tasks.integrations.helm.connection import (
    LazyReleaseConnection,
    ReleaseServiceFactory,
)
from helm_release_tasks.integrations.helm.exceptions import (
    ClusterConnectionError,
    HelmBinaryNotFoundError,
    HelmCommandError,
    ReleaseServiceError,
)
from helm_release_tasks.integrations.helm.release_manager import ReleaseManager

__all__ = [
    "ClusterClient",
    "ClusterConnectionError",
    "HelmBinaryNotFoundError",
    "HelmClient",
    "HelmCommandError",
    "LazyReleaseConnection",
    "ReleaseManager",
    "ReleaseServiceError",
    "ReleaseServiceFactory",
]
