"""Request and response models for release operations.

Requests are immutable values built in one step from validated task
configuration. Responses are typed dataclasses parsed from the JSON
output of the helm binary.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class SortBy(str, Enum):
    """Sort key for release listings."""

    NAME = "NAME"
    LAST_RELEASED = "LAST_RELEASED"


class SortOrder(str, Enum):
    """Sort direction for release listings."""

    ASC = "ASC"
    DESC = "DESC"


class ReleaseStatusCode(str, Enum):
    """Release states that a listing can be restricted to."""

    DEPLOYED = "DEPLOYED"
    FAILED = "FAILED"
    PENDING = "PENDING"
    SUPERSEDED = "SUPERSEDED"
    UNINSTALLED = "UNINSTALLED"
    UNINSTALLING = "UNINSTALLING"

    @property
    def flag(self) -> str:
        """Return the ``helm list`` flag selecting this state."""
        return f"--{self.value.lower()}"


class TestRunStatus(str, Enum):
    """Outcome of a single release test suite."""

    __test__ = False

    UNKNOWN = "UNKNOWN"
    RUNNING = "RUNNING"
    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"

    @classmethod
    def from_phase(cls, phase: str) -> TestRunStatus:
        """Map a Kubernetes pod phase reported by ``helm test``."""
        return {
            "succeeded": cls.SUCCESS,
            "failed": cls.FAILURE,
            "running": cls.RUNNING,
            "pending": cls.RUNNING,
        }.get(phase.strip().lower(), cls.UNKNOWN)


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class InstallReleaseRequest:
    """Request to install a chart as a new release."""

    name: str | None = None
    namespace: str | None = None
    values_yaml: str | None = None
    reuse_name: bool = False
    disable_hooks: bool = False
    dry_run: bool = False
    timeout: int = 300
    wait: bool = False


@dataclass(frozen=True)
class UpdateReleaseRequest:
    """Request to upgrade an existing release to a new chart."""

    name: str
    namespace: str | None = None
    values_yaml: str | None = None
    reset_values: bool = False
    reuse_values: bool = False
    disable_hooks: bool = False
    dry_run: bool = False
    force: bool = False
    recreate: bool = False
    timeout: int = 300
    wait: bool = False


@dataclass(frozen=True)
class RollbackReleaseRequest:
    """Request to roll a release back to a previous version."""

    name: str
    version: int
    namespace: str | None = None
    disable_hooks: bool = False
    dry_run: bool = False
    force: bool = False
    recreate: bool = False
    timeout: int = 300
    wait: bool = False


@dataclass(frozen=True)
class UninstallReleaseRequest:
    """Request to uninstall a release."""

    name: str
    namespace: str | None = None
    disable_hooks: bool = False
    purge: bool = False
    timeout: int = 300


@dataclass(frozen=True)
class GetReleaseStatusRequest:
    """Request for the status of one release version."""

    name: str
    version: int
    namespace: str | None = None


@dataclass(frozen=True)
class GetReleaseContentRequest:
    """Request for the full content of one release version."""

    name: str
    version: int
    namespace: str | None = None


@dataclass(frozen=True)
class GetHistoryRequest:
    """Request for the revision history of a release."""

    name: str
    max: int = 0
    namespace: str | None = None


@dataclass(frozen=True)
class ListReleasesRequest:
    """Request to enumerate releases in a namespace."""

    namespace: str
    filter: str | None = None
    limit: int = 256
    offset: int = 0
    sort_by: SortBy | None = SortBy.NAME
    sort_order: SortOrder | None = None
    status_codes: tuple[ReleaseStatusCode, ...] = ()


@dataclass(frozen=True)
class TestReleaseRequest:
    """Request to run the test suites of a release."""

    __test__ = False

    name: str
    namespace: str | None = None
    timeout: int = 300
    logs: bool = False


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


@dataclass
class Release:
    """A release as reported by ``helm status --output json``."""

    name: str
    namespace: str
    version: int
    status: str = ""
    description: str = ""
    notes: str = ""
    last_deployed: str = ""
    chart_name: str = ""
    chart_version: str = ""
    app_version: str = ""
    config: dict[str, Any] = field(default_factory=dict)
    manifest: str = ""
    hooks: list[dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> Release:
        """Create a Release from a helm release JSON document."""
        info = data.get("info") or {}
        metadata = (data.get("chart") or {}).get("metadata") or {}
        return cls(
            name=str(data.get("name", "")),
            namespace=str(data.get("namespace", "")),
            version=int(data.get("version", 0)),
            status=str(info.get("status", "")),
            description=str(info.get("description", "")),
            notes=str(info.get("notes", "")),
            last_deployed=str(info.get("last_deployed", "")),
            chart_name=str(metadata.get("name", "")),
            chart_version=str(metadata.get("version", "")),
            app_version=str(metadata.get("appVersion", "")),
            config=dict(data.get("config") or {}),
            manifest=str(data.get("manifest", "")),
            hooks=list(data.get("hooks") or []),
        )

    def __str__(self) -> str:
        return f"{self.name} (namespace={self.namespace}, version={self.version}, status={self.status})"


@dataclass
class ReleaseResponse:
    """Result of a mutating release operation."""

    release: Release
    info: str = ""

    def __str__(self) -> str:
        return str(self.release)


@dataclass
class ReleaseStatus:
    """Status of a single release version."""

    name: str
    namespace: str
    version: int
    status: str
    description: str = ""
    notes: str = ""
    last_deployed: str = ""

    @classmethod
    def from_release(cls, release: Release) -> ReleaseStatus:
        """Project the status fields out of a full release."""
        return cls(
            name=release.name,
            namespace=release.namespace,
            version=release.version,
            status=release.status,
            description=release.description,
            notes=release.notes,
            last_deployed=release.last_deployed,
        )

    def __str__(self) -> str:
        return f"{self.name} v{self.version}: {self.status} ({self.description})"


@dataclass
class ReleaseContent:
    """Full content of a single release version."""

    release: Release

    def __str__(self) -> str:
        return f"{self.release}\n{self.release.manifest}".rstrip()


@dataclass
class ReleaseRevision:
    """A single revision entry from ``helm history``."""

    revision: int
    status: str
    chart: str
    app_version: str
    description: str
    updated: str

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> ReleaseRevision:
        """Create from ``helm history --output json`` entry."""
        return cls(
            revision=int(data.get("revision", 0)),
            status=str(data.get("status", "")),
            chart=str(data.get("chart", "")),
            app_version=str(data.get("app_version", "")),
            description=str(data.get("description", "")),
            updated=str(data.get("updated", "")),
        )


@dataclass
class ReleaseHistory:
    """Revision history of a release, oldest first."""

    name: str
    revisions: list[ReleaseRevision] = field(default_factory=list)

    def __str__(self) -> str:
        lines = [f"{self.name}: {len(self.revisions)} revision(s)"]
        lines.extend(
            f"  {r.revision}\t{r.status}\t{r.chart}\t{r.description}" for r in self.revisions
        )
        return "\n".join(lines)


@dataclass
class ReleaseSummary:
    """A release entry from ``helm list``."""

    name: str
    namespace: str
    revision: int
    status: str
    chart: str
    app_version: str
    updated: str

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> ReleaseSummary:
        """Create from ``helm list --output json`` entry."""
        return cls(
            name=str(data.get("name", "")),
            namespace=str(data.get("namespace", "")),
            revision=int(data.get("revision", 0)),
            status=str(data.get("status", "")),
            chart=str(data.get("chart", "")),
            app_version=str(data.get("app_version", "")),
            updated=str(data.get("updated", "")),
        )


@dataclass
class ListReleasesResponse:
    """One page of a streamed release listing."""

    releases: list[ReleaseSummary]
    offset: int
    next: int | None = None

    @property
    def count(self) -> int:
        """Number of releases on this page."""
        return len(self.releases)

    def __str__(self) -> str:
        names = ", ".join(r.name for r in self.releases) or "<none>"
        return f"releases [{self.offset}:{self.offset + self.count}]: {names}"


@dataclass
class TestReleaseResponse:
    """Result of a single release test suite."""

    __test__ = False

    msg: str
    status: TestRunStatus

    def __str__(self) -> str:
        return f"{self.status.value}: {self.msg}"
