"""Kubernetes cluster client used to bind the release service.

Wraps the official kubernetes Python client to resolve the kubeconfig,
context and default namespace that every helm command is bound to.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog

from helm_release_tasks.integrations.helm.exceptions import ClusterConnectionError

if TYPE_CHECKING:
    from kubernetes.client import ApiClient

    from helm_release_tasks.core.config.models import ClusterConfig

logger = structlog.get_logger()

DEFAULT_NAMESPACE = "default"
IN_CLUSTER_CONTEXT = "in-cluster"
SERVICE_ACCOUNT_NAMESPACE_FILE = Path("/var/run/secrets/kubernetes.io/serviceaccount/namespace")


class ClusterClient:
    """A single Kubernetes API client handle.

    Loads kubeconfig (or in-cluster configuration when no kubeconfig is
    available) and keeps the resolved context and namespace. Supports the
    context manager protocol; ``close`` releases the API client.

    Example:
        ```python
        with ClusterClient(ClusterConfig()) as cluster:
            print(cluster.context, cluster.namespace)
        ```
    """

    def __init__(self, cluster_config: ClusterConfig) -> None:
        """Initialize the cluster client from configuration.

        Args:
            cluster_config: Kubeconfig path, context and namespace overrides.

        Raises:
            ClusterConnectionError: If no configuration can be loaded.
        """
        self._config = cluster_config
        self._context: str | None = None
        self._context_namespace: str | None = None
        self._api_client: ApiClient | None = None
        self._closed = False

        self._load_config()

        logger.info(
            "cluster_client_initialized",
            context=self._context,
            namespace=self.namespace,
        )

    def _load_config(self) -> None:
        """Load Kubernetes configuration from kubeconfig or in-cluster."""
        from kubernetes import config
        from kubernetes.config import ConfigException

        kubeconfig = self._config.kubeconfig
        try:
            self._api_client = config.new_client_from_config(
                config_file=kubeconfig,
                context=self._config.context,
            )
            contexts, active = config.list_kube_config_contexts(config_file=kubeconfig)
            selected = self._select_context(contexts, active)
            self._context = selected.get("name") if selected else self._config.context
            self._context_namespace = (selected or {}).get("context", {}).get("namespace")
            logger.debug("loaded_kubeconfig", context=self._context, kubeconfig=kubeconfig)
        except (ConfigException, FileNotFoundError):
            try:
                from kubernetes.client import ApiClient, Configuration

                incluster = Configuration()
                config.load_incluster_config(client_configuration=incluster)
                self._api_client = ApiClient(configuration=incluster)
                self._context = IN_CLUSTER_CONTEXT
                self._context_namespace = self._read_service_account_namespace()
                logger.debug("loaded_incluster_config")
            except ConfigException as e:
                raise ClusterConnectionError(
                    message="Cannot load Kubernetes configuration. "
                    "Ensure kubeconfig exists or running inside a cluster.",
                    original_error=e,
                ) from e

    def _select_context(
        self,
        contexts: list[dict[str, Any]],
        active: dict[str, Any] | None,
    ) -> dict[str, Any] | None:
        if self._config.context:
            return next((c for c in contexts if c.get("name") == self._config.context), None)
        return active

    @staticmethod
    def _read_service_account_namespace() -> str | None:
        try:
            return SERVICE_ACCOUNT_NAMESPACE_FILE.read_text().strip() or None
        except OSError:
            return None

    @property
    def api_client(self) -> ApiClient:
        """The underlying kubernetes ``ApiClient``."""
        if self._api_client is None:
            raise ClusterConnectionError(message="Cluster client is closed")
        return self._api_client

    @property
    def context(self) -> str | None:
        """Name of the kubeconfig context in use, or ``in-cluster``."""
        return self._context

    @property
    def kubeconfig(self) -> str | None:
        """Kubeconfig path helm commands are bound to, if not in-cluster."""
        if self._context == IN_CLUSTER_CONTEXT:
            return None
        return self._config.kubeconfig

    @property
    def namespace(self) -> str:
        """Default namespace: configured, then from the context, then ``default``."""
        return self._config.namespace or self._context_namespace or DEFAULT_NAMESPACE

    @property
    def closed(self) -> bool:
        """Whether ``close`` has been called."""
        return self._closed

    def close(self) -> None:
        """Release the API client and its connection pool."""
        if self._closed:
            return
        self._closed = True
        api_client, self._api_client = self._api_client, None
        if api_client is not None:
            api_client.close()
        logger.debug("cluster_client_closed", context=self._context)

    def __enter__(self) -> ClusterClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
