"""Release manager: the release-service handle used by every task.

Takes one immutable request per operation, resolves the namespace against
the cluster client, and turns helm output into typed responses. ``list``
and ``test`` are streamed as iterators.
"""

from __future__ import annotations

import tempfile
from collections.abc import Iterator
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from helm_release_tasks.charts.writer import write_archive
from helm_release_tasks.integrations.helm.cluster import DEFAULT_NAMESPACE
from helm_release_tasks.integrations.helm.models import (
    GetHistoryRequest,
    GetReleaseContentRequest,
    GetReleaseStatusRequest,
    InstallReleaseRequest,
    ListReleasesRequest,
    ListReleasesResponse,
    Release,
    ReleaseContent,
    ReleaseHistory,
    ReleaseResponse,
    ReleaseStatus,
    RollbackReleaseRequest,
    TestReleaseRequest,
    TestReleaseResponse,
    TestRunStatus,
    UninstallReleaseRequest,
    UpdateReleaseRequest,
)

if TYPE_CHECKING:
    from helm_release_tasks.charts.models import Chart
    from helm_release_tasks.integrations.helm.client import HelmClient
    from helm_release_tasks.integrations.helm.cluster import ClusterClient

logger = structlog.get_logger()

LIST_PAGE_SIZE = 100

TEST_SUITE_PREFIX = "TEST SUITE:"
TEST_PHASE_PREFIX = "Phase:"


def parse_test_output(stdout: str) -> list[TestReleaseResponse]:
    """Parse the per-suite report printed by ``helm test``.

    Suites reported as ``None`` (a release without tests) are skipped.
    """
    results: list[TestReleaseResponse] = []
    suite: str | None = None
    for line in stdout.splitlines():
        stripped = line.strip()
        if stripped.startswith(TEST_SUITE_PREFIX):
            suite = stripped[len(TEST_SUITE_PREFIX) :].strip()
            if suite == "None":
                suite = None
        elif stripped.startswith(TEST_PHASE_PREFIX) and suite is not None:
            phase = stripped[len(TEST_PHASE_PREFIX) :].strip()
            results.append(
                TestReleaseResponse(
                    msg=f"{suite}: {phase}",
                    status=TestRunStatus.from_phase(phase),
                )
            )
            suite = None
    return results


class ReleaseManager:
    """Performs release operations against one cluster.

    Owns the cluster client it is given; ``close`` releases it.
    """

    def __init__(
        self,
        helm: HelmClient,
        cluster: ClusterClient | None = None,
        *,
        list_page_size: int = LIST_PAGE_SIZE,
    ) -> None:
        """Initialize the release manager.

        Args:
            helm: Helm CLI client bound to the cluster.
            cluster: Cluster client supplying the default namespace.
            list_page_size: Releases fetched per ``helm list`` call.
        """
        self._helm = helm
        self._cluster = cluster
        self._list_page_size = list_page_size
        self._log = logger.bind(entity="release_manager")

    @property
    def default_namespace(self) -> str:
        """Namespace used when a request names none."""
        return self._cluster.namespace if self._cluster else DEFAULT_NAMESPACE

    def _resolve_namespace(self, namespace: str | None) -> str:
        return namespace or self.default_namespace

    # -----------------------------------------------------------------------
    # Mutating operations
    # -----------------------------------------------------------------------

    def install(self, request: InstallReleaseRequest, chart: Chart) -> ReleaseResponse:
        """Install ``chart`` as a new release."""
        namespace = self._resolve_namespace(request.namespace)
        with tempfile.TemporaryDirectory(prefix="helm-tasks-") as workdir:
            archive = write_archive(chart, Path(workdir) / f"{chart.name}.tgz")
            release = self._helm.install(request, str(archive), namespace=namespace)
        return ReleaseResponse(release=release)

    def update(self, request: UpdateReleaseRequest, chart: Chart) -> ReleaseResponse:
        """Upgrade an existing release to ``chart``."""
        namespace = self._resolve_namespace(request.namespace)
        with tempfile.TemporaryDirectory(prefix="helm-tasks-") as workdir:
            archive = write_archive(chart, Path(workdir) / f"{chart.name}.tgz")
            release = self._helm.upgrade(request, str(archive), namespace=namespace)
        return ReleaseResponse(release=release)

    def rollback(self, request: RollbackReleaseRequest) -> ReleaseResponse:
        """Roll a release back to ``request.version``."""
        namespace = self._resolve_namespace(request.namespace)
        info = self._helm.rollback(request, namespace=namespace)
        release = Release(name=request.name, namespace=namespace, version=request.version)
        return ReleaseResponse(release=release, info=info.strip())

    def uninstall(self, request: UninstallReleaseRequest) -> ReleaseResponse:
        """Uninstall a release, keeping its history unless purging."""
        namespace = self._resolve_namespace(request.namespace)
        info = self._helm.uninstall(request, namespace=namespace)
        release = Release(
            name=request.name,
            namespace=namespace,
            version=0,
            status="uninstalled",
        )
        return ReleaseResponse(release=release, info=info.strip())

    # -----------------------------------------------------------------------
    # Queries
    # -----------------------------------------------------------------------

    def get_status(self, request: GetReleaseStatusRequest) -> ReleaseStatus:
        """Get the status of one release version (``0`` for the latest)."""
        release = self._helm.status(
            request.name,
            namespace=self._resolve_namespace(request.namespace),
            revision=request.version,
        )
        return ReleaseStatus.from_release(release)

    def get_content(self, request: GetReleaseContentRequest) -> ReleaseContent:
        """Get the manifest, values and hooks of one release version."""
        release = self._helm.status(
            request.name,
            namespace=self._resolve_namespace(request.namespace),
            revision=request.version,
        )
        return ReleaseContent(release=release)

    def get_history(self, request: GetHistoryRequest) -> ReleaseHistory:
        """Get the revision history of a release."""
        revisions = self._helm.history(
            request.name,
            namespace=self._resolve_namespace(request.namespace),
            max_revisions=request.max,
        )
        return ReleaseHistory(name=request.name, revisions=revisions)

    def list(self, request: ListReleasesRequest) -> Iterator[ListReleasesResponse]:
        """Stream releases page by page.

        ``request.limit`` caps the total number of releases; zero means no
        cap. The first page is always produced, even when empty.
        """
        unbounded = request.limit == 0
        remaining = request.limit
        offset = request.offset
        first = True
        while True:
            page_size = (
                self._list_page_size if unbounded else min(remaining, self._list_page_size)
            )
            releases = self._helm.list_releases(request, offset=offset, max_releases=page_size)
            if not releases and not first:
                return
            first = False
            fetched = len(releases)
            more = fetched == page_size and (unbounded or remaining > fetched)
            next_offset = offset + fetched if more else None
            self._log.debug("listed_release_page", offset=offset, count=fetched)
            yield ListReleasesResponse(releases=releases, offset=offset, next=next_offset)
            if next_offset is None:
                return
            offset = next_offset
            if not unbounded:
                remaining -= fetched

    def test(self, request: TestReleaseRequest) -> Iterator[TestReleaseResponse]:
        """Run a release's tests and stream one result per suite.

        When helm reports failure, a final ``FAILURE`` result carrying its
        error output follows the parsed suites.
        """
        result = self._helm.test(request, namespace=self._resolve_namespace(request.namespace))
        responses = parse_test_output(result.stdout or "")
        yield from responses
        if result.returncode != 0:
            message = (result.stderr or "").strip() or f"helm test exited with {result.returncode}"
            yield TestReleaseResponse(msg=message, status=TestRunStatus.FAILURE)

    # -----------------------------------------------------------------------
    # Lifecycle
    # -----------------------------------------------------------------------

    def close(self) -> None:
        """Close the cluster client."""
        if self._cluster is not None:
            self._cluster.close()
