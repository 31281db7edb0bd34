"""Helm CLI wrapper for release operations.

Wraps the helm binary via subprocess for install, upgrade, rollback,
uninstall, status, history, list, and test operations. Every command
is bound to one kubeconfig/context pair and one storage driver.
"""

from __future__ import annotations

import json
import os
import shutil
import subprocess
from pathlib import Path
from typing import Any

import structlog

from helm_release_tasks.integrations.helm.exceptions import (
    HelmBinaryNotFoundError,
    HelmCommandError,
    ReleaseServiceError,
)
from helm_release_tasks.integrations.helm.models import (
    InstallReleaseRequest,
    ListReleasesRequest,
    Release,
    ReleaseRevision,
    ReleaseSummary,
    RollbackReleaseRequest,
    SortBy,
    SortOrder,
    TestReleaseRequest,
    UninstallReleaseRequest,
    UpdateReleaseRequest,
)

logger = structlog.get_logger()

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

HELM_TIMEOUT_SECONDS = 300
VERSION_TIMEOUT_SECONDS = 10
SHORT_TIMEOUT_SECONDS = 30

# Grace period on top of the helm-side --timeout before the subprocess is killed
PROCESS_TIMEOUT_GRACE_SECONDS = 60


def format_duration(seconds: int) -> str:
    """Render a seconds value as a helm duration flag value (``300s``)."""
    return f"{seconds}s"


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class HelmClient:
    """Client for interacting with the Helm CLI.

    Wraps helm binary execution and provides typed results.
    """

    def __init__(
        self,
        binary_path: str | None = None,
        *,
        kubeconfig: str | None = None,
        kube_context: str | None = None,
        driver: str | None = None,
    ) -> None:
        """Initialize Helm client.

        Args:
            binary_path: Optional explicit path to helm binary.
                If None, searches PATH.
            kubeconfig: Kubeconfig file passed as ``--kubeconfig``.
            kube_context: Context passed as ``--kube-context``.
            driver: Release storage driver exported as ``HELM_DRIVER``.

        Raises:
            HelmBinaryNotFoundError: If binary not found.
        """
        self._binary = self._find_binary(binary_path)
        self._kubeconfig = kubeconfig
        self._kube_context = kube_context
        self._driver = driver
        self._log = logger.bind(binary=self._binary, kube_context=kube_context)
        self._log.debug("helm_client_initialized")

    @staticmethod
    def _find_binary(binary_path: str | None) -> str:
        """Locate helm binary.

        Args:
            binary_path: Explicit path or None to search PATH.

        Returns:
            Path to helm binary.

        Raises:
            HelmBinaryNotFoundError: If not found.
        """
        if binary_path:
            path = Path(binary_path)
            if not path.exists():
                raise HelmBinaryNotFoundError()
            return str(path.resolve())

        found = shutil.which("helm")
        if not found:
            raise HelmBinaryNotFoundError()

        return found

    def _global_args(self) -> list[str]:
        args: list[str] = []
        if self._kubeconfig:
            args.extend(["--kubeconfig", self._kubeconfig])
        if self._kube_context:
            args.extend(["--kube-context", self._kube_context])
        return args

    def _env(self) -> dict[str, str] | None:
        if not self._driver:
            return None
        return {**os.environ, "HELM_DRIVER": self._driver}

    def _run(
        self,
        args: list[str],
        *,
        timeout: int = HELM_TIMEOUT_SECONDS,
        input_text: str | None = None,
        check: bool = True,
    ) -> subprocess.CompletedProcess[str]:
        """Run a helm command.

        Args:
            args: Command arguments (without the ``helm`` prefix).
            timeout: Timeout in seconds.
            input_text: Text written to the command's standard input.
            check: Raise on non-zero exit.

        Returns:
            CompletedProcess result.

        Raises:
            HelmCommandError: On non-zero exit when ``check`` is set.
            ReleaseServiceError: On timeout.
        """
        cmd = [self._binary, *args, *self._global_args()]
        self._log.debug("running_helm_command", args=args)

        try:
            return subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                check=check,
                timeout=timeout,
                input=input_text,
                env=self._env(),
            )
        except subprocess.CalledProcessError as e:
            raise HelmCommandError(
                message=f"Helm command failed: {e.stderr.strip() if e.stderr else f'exit code {e.returncode}'}",
                stderr=e.stderr,
            ) from e
        except subprocess.TimeoutExpired as e:
            raise ReleaseServiceError(
                message=f"Helm command timed out after {timeout}s",
            ) from e

    @staticmethod
    def _parse_json(stdout: str) -> Any:
        try:
            return json.loads(stdout) if stdout.strip() else None
        except json.JSONDecodeError as e:
            raise ReleaseServiceError(message=f"Unparseable helm output: {e}") from e

    # -----------------------------------------------------------------------
    # Version
    # -----------------------------------------------------------------------

    def get_version(self) -> str:
        """Get helm version string.

        Returns:
            Version string (e.g., ``v3.17.0``).
        """
        result = self._run(["version", "--short"], timeout=VERSION_TIMEOUT_SECONDS)
        version = result.stdout.strip()
        # Strip build metadata (e.g., "v3.17.0+g301108e" -> "v3.17.0")
        if "+" in version:
            version = version.split("+")[0]
        return version

    # -----------------------------------------------------------------------
    # Mutating operations
    # -----------------------------------------------------------------------

    def install(
        self,
        request: InstallReleaseRequest,
        chart: str,
        *,
        namespace: str,
    ) -> Release:
        """Install a chart archive or directory as a new release.

        A blank request name asks helm to generate one.

        Args:
            request: Install request.
            chart: Local chart path.
            namespace: Namespace the release is installed into.

        Returns:
            The installed (or dry-run) release.
        """
        args = ["install"]
        if request.name:
            args.append(request.name)
        args.append(chart)
        if not request.name:
            args.append("--generate-name")
        args.extend(["--namespace", namespace, "--output", "json"])
        if request.reuse_name:
            args.append("--replace")
        args.extend(
            self._build_mutating_args(
                disable_hooks=request.disable_hooks,
                dry_run=request.dry_run,
                timeout=request.timeout,
                wait=request.wait,
            )
        )
        if request.values_yaml:
            args.extend(["--values", "-"])

        result = self._run(
            args,
            timeout=request.timeout + PROCESS_TIMEOUT_GRACE_SECONDS,
            input_text=request.values_yaml or None,
        )
        release = Release.from_json(self._parse_json(result.stdout) or {})
        self._log.info("helm_install_success", release=release.name, chart=chart)
        return release

    def upgrade(
        self,
        request: UpdateReleaseRequest,
        chart: str,
        *,
        namespace: str,
    ) -> Release:
        """Upgrade an existing release.

        Args:
            request: Update request.
            chart: Local chart path.
            namespace: Namespace of the release.

        Returns:
            The upgraded (or dry-run) release.
        """
        args = ["upgrade", request.name, chart, "--namespace", namespace, "--output", "json"]
        if request.reset_values:
            args.append("--reset-values")
        if request.reuse_values:
            args.append("--reuse-values")
        args.extend(
            self._build_mutating_args(
                disable_hooks=request.disable_hooks,
                dry_run=request.dry_run,
                timeout=request.timeout,
                wait=request.wait,
                force=request.force,
            )
        )
        if request.recreate:
            # helm 3 dropped --recreate-pods from upgrade
            self._log.warning("recreate_pods_unsupported_on_upgrade", release=request.name)
        if request.values_yaml:
            args.extend(["--values", "-"])

        result = self._run(
            args,
            timeout=request.timeout + PROCESS_TIMEOUT_GRACE_SECONDS,
            input_text=request.values_yaml or None,
        )
        release = Release.from_json(self._parse_json(result.stdout) or {})
        self._log.info("helm_upgrade_success", release=request.name, chart=chart)
        return release

    def rollback(self, request: RollbackReleaseRequest, *, namespace: str) -> str:
        """Rollback a release to a given revision.

        Args:
            request: Rollback request.
            namespace: Namespace of the release.

        Returns:
            Helm's informational output.
        """
        args = ["rollback", request.name, str(request.version), "--namespace", namespace]
        args.extend(
            self._build_mutating_args(
                disable_hooks=request.disable_hooks,
                dry_run=request.dry_run,
                timeout=request.timeout,
                wait=request.wait,
                force=request.force,
                recreate=request.recreate,
            )
        )

        result = self._run(args, timeout=request.timeout + PROCESS_TIMEOUT_GRACE_SECONDS)
        self._log.info("helm_rollback_success", release=request.name, revision=request.version)
        return result.stdout

    def uninstall(self, request: UninstallReleaseRequest, *, namespace: str) -> str:
        """Uninstall a release.

        Without ``purge`` the release history is kept.

        Args:
            request: Uninstall request.
            namespace: Namespace of the release.

        Returns:
            Helm's informational output.
        """
        args = ["uninstall", request.name, "--namespace", namespace]
        if not request.purge:
            args.append("--keep-history")
        if request.disable_hooks:
            args.append("--no-hooks")
        args.extend(["--timeout", format_duration(request.timeout)])

        result = self._run(args, timeout=request.timeout + PROCESS_TIMEOUT_GRACE_SECONDS)
        self._log.info("helm_uninstall_success", release=request.name, purge=request.purge)
        return result.stdout

    # -----------------------------------------------------------------------
    # Queries
    # -----------------------------------------------------------------------

    def status(
        self,
        release_name: str,
        *,
        namespace: str,
        revision: int | None = None,
    ) -> Release:
        """Get a release, including its manifest and values.

        Args:
            release_name: Name of the release.
            namespace: Namespace of the release.
            revision: Specific revision to inspect.

        Returns:
            The release document.
        """
        args = ["status", release_name, "--namespace", namespace, "--output", "json"]
        if revision:
            args.extend(["--revision", str(revision)])

        result = self._run(args, timeout=SHORT_TIMEOUT_SECONDS)
        return Release.from_json(self._parse_json(result.stdout) or {"name": release_name})

    def history(
        self,
        release_name: str,
        *,
        namespace: str,
        max_revisions: int = 0,
    ) -> list[ReleaseRevision]:
        """Get release history.

        Args:
            release_name: Name of the release.
            namespace: Namespace of the release.
            max_revisions: Maximum number of revisions; zero for helm's default.

        Returns:
            List of revision history entries.
        """
        args = ["history", release_name, "--namespace", namespace, "--output", "json"]
        if max_revisions > 0:
            args.extend(["--max", str(max_revisions)])

        result = self._run(args, timeout=SHORT_TIMEOUT_SECONDS)
        data = self._parse_json(result.stdout) or []
        return [ReleaseRevision.from_json(entry) for entry in data]

    def list_releases(
        self,
        request: ListReleasesRequest,
        *,
        offset: int,
        max_releases: int,
    ) -> list[ReleaseSummary]:
        """List one page of releases.

        Args:
            request: List request carrying filter, sort and state selection.
            offset: Index of the first release to return.
            max_releases: Page size.

        Returns:
            List of releases.
        """
        args = [
            "list",
            "--namespace",
            request.namespace,
            "--output",
            "json",
            "--max",
            str(max_releases),
            "--offset",
            str(offset),
        ]
        if request.filter:
            args.extend(["--filter", request.filter])
        if request.sort_by == SortBy.LAST_RELEASED:
            args.append("--date")
        if request.sort_order == SortOrder.DESC:
            args.append("--reverse")
        args.extend(code.flag for code in request.status_codes)

        result = self._run(args, timeout=SHORT_TIMEOUT_SECONDS)
        data = self._parse_json(result.stdout) or []
        return [ReleaseSummary.from_json(entry) for entry in data]

    def test(
        self,
        request: TestReleaseRequest,
        *,
        namespace: str,
    ) -> subprocess.CompletedProcess[str]:
        """Run the test suites of a release.

        Failing suites make helm exit non-zero; the completed process is
        returned unchecked so the caller can report every suite.

        Args:
            request: Test request.
            namespace: Namespace of the release.

        Returns:
            CompletedProcess result.
        """
        args = [
            "test",
            request.name,
            "--namespace",
            namespace,
            "--timeout",
            format_duration(request.timeout),
        ]
        if request.logs:
            args.append("--logs")

        return self._run(
            args,
            timeout=request.timeout + PROCESS_TIMEOUT_GRACE_SECONDS,
            check=False,
        )

    # -----------------------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------------------

    @staticmethod
    def _build_mutating_args(
        *,
        disable_hooks: bool = False,
        dry_run: bool = False,
        timeout: int = HELM_TIMEOUT_SECONDS,
        wait: bool = False,
        force: bool = False,
        recreate: bool = False,
    ) -> list[str]:
        """Build Helm CLI arguments shared by mutating operations.

        Returns:
            List of CLI argument strings.
        """
        args: list[str] = ["--timeout", format_duration(timeout)]
        if disable_hooks:
            args.append("--no-hooks")
        if dry_run:
            args.append("--dry-run")
        if wait:
            args.append("--wait")
        if force:
            args.append("--force")
        if recreate:
            args.append("--recreate-pods")
        return args
