"""Release service custom exceptions."""

from __future__ import annotations


class ReleaseServiceError(Exception):
    """Base exception for release service operations.

    Attributes:
        message: Human-readable error message.
        stderr: Captured standard error of the failed helm command (if any).
        release_name: Name of the release involved (if applicable).
    """

    def __init__(
        self,
        message: str,
        stderr: str | None = None,
        release_name: str | None = None,
    ) -> None:
        """Initialize ReleaseServiceError.

        Args:
            message: Human-readable error message.
            stderr: Captured standard error output.
            release_name: Name of the release involved.
        """
        super().__init__(message)
        self.message = message
        self.stderr = stderr
        self.release_name = release_name

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.release_name:
            return f"{self.message} [release/{self.release_name}]"
        return self.message


class HelmBinaryNotFoundError(ReleaseServiceError):
    """Raised when helm binary is not found in PATH."""

    def __init__(self) -> None:
        super().__init__(
            message=(
                "helm binary not found in PATH. Install from: https://helm.sh/docs/intro/install/"
            ),
        )


class HelmCommandError(ReleaseServiceError):
    """Raised when a helm command fails."""


class ClusterConnectionError(ReleaseServiceError):
    """Raised when no cluster client can be constructed.

    This includes a missing or malformed kubeconfig outside of a cluster.
    """

    def __init__(
        self,
        message: str = "Failed to connect to Kubernetes cluster",
        original_error: Exception | None = None,
    ) -> None:
        """Initialize ClusterConnectionError.

        Args:
            message: Human-readable error message.
            original_error: The original exception that caused this error.
        """
        super().__init__(message=message)
        self.original_error = original_error
