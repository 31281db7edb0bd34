"""Task operations.

Each operation turns one validated configuration into one request, makes
one release-service call (or consumes one stream), and reports what came
back. ``connect`` opens the release manager on first call.
"""

from __future__ import annotations

import tempfile
from contextlib import closing
from pathlib import Path
from typing import TYPE_CHECKING, Any

import httpx

from helm_release_tasks.charts.loader import DOWNLOAD_TIMEOUT_SECONDS, URLChartLoader
from helm_release_tasks.charts.uris import is_remote, to_path
from helm_release_tasks.charts.writer import write_archive
from helm_release_tasks.integrations.helm.cluster import DEFAULT_NAMESPACE
from helm_release_tasks.integrations.helm.models import (
    GetHistoryRequest,
    GetReleaseContentRequest,
    GetReleaseStatusRequest,
    InstallReleaseRequest,
    ListReleasesRequest,
    RollbackReleaseRequest,
    TestReleaseRequest,
    TestRunStatus,
    UninstallReleaseRequest,
    UpdateReleaseRequest,
)
from helm_release_tasks.tasks.events import ReleaseEvent, dispatch
from helm_release_tasks.tasks.exceptions import (
    TaskConfigurationError,
    TaskExecutionError,
    TaskFailureError,
)
from helm_release_tasks.tasks.validation import validate_namespace

if TYPE_CHECKING:
    from helm_release_tasks.charts.models import Chart
    from helm_release_tasks.tasks.config import (
        ContentConfig,
        HistoryConfig,
        InstallConfig,
        ListConfig,
        PackageConfig,
        RollbackConfig,
        StatusConfig,
        TestConfig,
        UninstallConfig,
        UpgradeConfig,
    )
    from helm_release_tasks.tasks.context import TaskContext
    from helm_release_tasks.tasks.registry import Connect

ARCHIVE_CONTENT_TYPE = "application/gzip"


def _notify(context: TaskContext, response: Any) -> None:
    dispatch(context.listeners, ReleaseEvent(source=context.name, response=response, log=context.log))


def _default_chart_directory(context: TaskContext) -> Path:
    return context.project.default_chart_directory


# ---------------------------------------------------------------------------
# Mutating operations
# ---------------------------------------------------------------------------


def install(config: InstallConfig, context: TaskContext, connect: Connect) -> None:
    """Install a chart as a new release.

    Without ``chart_url`` the project's generated chart directory is used.
    When that directory is missing, a lenient install is skipped with a
    warning and any other install fails before contacting the cluster.
    """
    chart_url = config.chart_url
    if not chart_url:
        chart_directory = _default_chart_directory(context)
        if not chart_directory.is_dir():
            if config.lenient:
                context.log.warning(
                    "chart_directory_missing_install_skipped",
                    chart_directory=str(chart_directory),
                )
                return
            raise TaskExecutionError(
                f"Chart directory does not exist: {chart_directory}",
                task=context.name,
            )
        chart_url = str(chart_directory)

    with URLChartLoader() as loader:
        chart = loader.load(chart_url)
        values_yaml = config.values_yaml
        if not values_yaml and config.values_yaml_uri:
            values_yaml = loader.read_text(config.values_yaml_uri)

    request = InstallReleaseRequest(
        name=config.release_name,
        namespace=config.namespace,
        values_yaml=values_yaml,
        reuse_name=config.reuse_release_name,
        disable_hooks=config.disable_hooks,
        dry_run=config.dry_run,
        timeout=config.timeout,
        wait=config.wait,
    )
    response = connect().install(request, chart)
    context.log.info("release_installed", release=str(response.release), chart=str(chart))


def upgrade(config: UpgradeConfig, context: TaskContext, connect: Connect) -> None:
    """Upgrade a release to a chart, by default the generated chart directory."""
    chart_url = config.chart_url
    if not chart_url:
        chart_directory = _default_chart_directory(context)
        if not chart_directory.is_dir():
            raise TaskExecutionError(
                f"Chart directory does not exist: {chart_directory}",
                task=context.name,
            )
        chart_url = str(chart_directory)

    with URLChartLoader() as loader:
        chart = loader.load(chart_url)

    request = UpdateReleaseRequest(
        name=config.release_name,
        namespace=config.namespace,
        values_yaml=config.values_yaml,
        reset_values=config.reset_values,
        reuse_values=config.reuse_values,
        disable_hooks=config.disable_hooks,
        dry_run=config.dry_run,
        force=config.force,
        recreate=config.recreate,
        timeout=config.timeout,
        wait=config.wait,
    )
    response = connect().update(request, chart)
    context.log.info("release_upgraded", release=str(response.release), chart=str(chart))


def rollback(config: RollbackConfig, context: TaskContext, connect: Connect) -> None:
    request = RollbackReleaseRequest(
        name=config.release_name,
        version=config.version,
        namespace=config.namespace,
        disable_hooks=config.disable_hooks,
        dry_run=config.dry_run,
        force=config.force,
        recreate=config.recreate,
        timeout=config.timeout,
        wait=config.wait,
    )
    response = connect().rollback(request)
    context.log.info("release_rolled_back", release=str(response.release), info=response.info)


def uninstall(config: UninstallConfig, context: TaskContext, connect: Connect) -> None:
    request = UninstallReleaseRequest(
        name=config.release_name,
        namespace=config.namespace,
        disable_hooks=config.disable_hooks,
        purge=config.purge,
        timeout=config.timeout,
    )
    response = connect().uninstall(request)
    context.log.info("release_uninstalled", release=str(response.release), purge=config.purge)


# ---------------------------------------------------------------------------
# Reporting operations
# ---------------------------------------------------------------------------


def status(config: StatusConfig, context: TaskContext, connect: Connect) -> None:
    request = GetReleaseStatusRequest(
        name=config.release_name,
        version=config.version,
        namespace=config.namespace,
    )
    _notify(context, connect().get_status(request))


def content(config: ContentConfig, context: TaskContext, connect: Connect) -> None:
    request = GetReleaseContentRequest(
        name=config.release_name,
        version=config.version,
        namespace=config.namespace,
    )
    _notify(context, connect().get_content(request))


def history(config: HistoryConfig, context: TaskContext, connect: Connect) -> None:
    request = GetHistoryRequest(
        name=config.release_name,
        max=config.max,
        namespace=config.namespace,
    )
    _notify(context, connect().get_history(request))


def list_releases(config: ListConfig, context: TaskContext, connect: Connect) -> None:
    """Report every page of the release listing.

    The namespace falls back to the cluster's default namespace.
    """
    manager = connect()
    namespace = config.namespace or manager.default_namespace or DEFAULT_NAMESPACE
    try:
        validate_namespace(namespace)
    except ValueError as e:
        raise TaskConfigurationError(
            "Invalid task configuration",
            errors={"namespace": str(e)},
            task=context.name,
        ) from e

    request = ListReleasesRequest(
        namespace=namespace,
        filter=config.filter,
        limit=config.limit,
        offset=config.offset,
        sort_by=config.sort_by,
        sort_order=config.sort_order,
        status_codes=config.status_codes,
    )
    for page in manager.list(request):
        _notify(context, page)


def test(config: TestConfig, context: TaskContext, connect: Connect) -> None:
    """Run a release's tests, reporting each result as it arrives.

    Raises:
        TaskFailureError: On the first failed result, after it is reported.
    """
    request = TestReleaseRequest(
        name=config.release_name,
        namespace=config.namespace,
        timeout=config.timeout,
        logs=config.logs,
    )
    with closing(connect().test(request)) as results:
        for result in results:
            _notify(context, result)
            if result.status is TestRunStatus.FAILURE:
                raise TaskFailureError(
                    f"Release test failed: {result.msg}",
                    task=context.name,
                )


# ---------------------------------------------------------------------------
# Packaging
# ---------------------------------------------------------------------------


def package(config: PackageConfig, context: TaskContext, connect: Connect) -> None:
    """Write a chart to a ``.tgz`` archive on disk or on an HTTP server.

    The default target is ``<name>.tgz`` in the generated charts directory.
    """
    with URLChartLoader() as loader:
        chart = loader.load(config.chart_contents_uri)
    if not chart.metadata.name:
        raise TaskExecutionError("Chart metadata has no name", task=context.name)

    target = config.chart_target_uri or str(
        context.project.generated_charts_directory / f"{chart.name}.tgz"
    )
    if is_remote(target):
        _upload(chart, target)
    else:
        write_archive(chart, to_path(target))
    context.log.info("chart_packaged", chart=str(chart), target=target)


def _upload(chart: Chart, url: str) -> None:
    with tempfile.TemporaryDirectory(prefix="helm-tasks-") as workdir:
        archive = write_archive(chart, Path(workdir) / f"{chart.name}.tgz")
        data = archive.read_bytes()
    with httpx.Client(timeout=DOWNLOAD_TIMEOUT_SECONDS) as client:
        response = client.put(url, content=data, headers={"Content-Type": ARCHIVE_CONTENT_TYPE})
        response.raise_for_status()
