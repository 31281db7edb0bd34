"""Connection factory for the release service.

Builds exactly one cluster client and one release manager per task
execution, on first use.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

import structlog

from helm_release_tasks.integrations.helm.client import HelmClient
from helm_release_tasks.integrations.helm.cluster import IN_CLUSTER_CONTEXT, ClusterClient
from helm_release_tasks.integrations.helm.release_manager import ReleaseManager

if TYPE_CHECKING:
    from helm_release_tasks.core.config.models import ClusterConfig, HelmConfig

logger = structlog.get_logger()


class ConnectionFactory(Protocol):
    """Anything that can open a release manager."""

    def create(self) -> ReleaseManager: ...


class ReleaseServiceFactory:
    """Creates release managers bound to the configured cluster."""

    def __init__(self, cluster_config: ClusterConfig, helm_config: HelmConfig) -> None:
        self._cluster_config = cluster_config
        self._helm_config = helm_config

    def create(self) -> ReleaseManager:
        """Construct a cluster client and a release manager over it.

        Raises:
            ClusterConnectionError: If no cluster configuration resolves.
            HelmBinaryNotFoundError: If the helm binary is missing.
        """
        cluster = ClusterClient(self._cluster_config)
        try:
            helm = HelmClient(
                self._helm_config.binary_path,
                kubeconfig=cluster.kubeconfig,
                kube_context=None if cluster.context == IN_CLUSTER_CONTEXT else cluster.context,
                driver=self._helm_config.driver,
            )
        except BaseException:
            cluster.close()
            raise
        return ReleaseManager(helm, cluster)


class LazyReleaseConnection:
    """Opens a release manager on first call and closes it on request.

    Calling the connection returns the same manager every time.
    """

    def __init__(self, factory: ConnectionFactory) -> None:
        self._factory = factory
        self._manager: ReleaseManager | None = None

    def __call__(self) -> ReleaseManager:
        if self._manager is None:
            self._manager = self._factory.create()
            logger.debug("release_connection_opened")
        return self._manager

    @property
    def opened(self) -> bool:
        """Whether a manager has been created."""
        return self._manager is not None

    def close(self) -> None:
        """Close the manager if one was opened."""
        manager, self._manager = self._manager, None
        if manager is not None:
            manager.close()
            logger.debug("release_connection_closed")
