"""Per-task configuration models.

Field names are snake_case; configuration documents may use the camelCase
aliases (``releaseName``, ``dryRun``, ``chartUrl``). Every model is frozen
once validated.
"""

from __future__ import annotations

from typing import Annotated, Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, PositiveInt, ValidationError
from pydantic.alias_generators import to_camel

from helm_release_tasks.integrations.helm.client import HELM_TIMEOUT_SECONDS
from helm_release_tasks.integrations.helm.models import ReleaseStatusCode, SortBy, SortOrder
from helm_release_tasks.tasks.exceptions import TaskConfigurationError
from helm_release_tasks.tasks.validation import Namespace, OptionalReleaseName, ReleaseName

DEFAULT_LIST_LIMIT = 256

Version = Annotated[int, Field(ge=0)]


class TaskConfig(BaseModel):
    """Fields common to every task."""

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    skip: bool = False


class ListeningTaskConfig(TaskConfig):
    """A task whose responses go to listeners.

    With no listeners the task has nothing to report and does not run.
    """

    listeners: tuple[str, ...] = ()


class _MutatingConfig(TaskConfig):
    namespace: Namespace = None
    disable_hooks: bool = False
    timeout: PositiveInt = HELM_TIMEOUT_SECONDS


class InstallConfig(_MutatingConfig):
    """Install a chart as a new release."""

    release_name: OptionalReleaseName = None
    reuse_release_name: bool = False
    lenient: bool = False
    values_yaml: str | None = None
    values_yaml_uri: str | None = None
    chart_url: str | None = None
    dry_run: bool = False
    wait: bool = False


class UpgradeConfig(_MutatingConfig):
    """Upgrade an existing release."""

    release_name: ReleaseName
    chart_url: str | None = None
    reset_values: bool = False
    reuse_values: bool = False
    values_yaml: str | None = None
    dry_run: bool = False
    wait: bool = False
    force: bool = False
    recreate: bool = False


class RollbackConfig(_MutatingConfig):
    """Roll a release back to an earlier version."""

    release_name: ReleaseName
    version: Version
    dry_run: bool = False
    wait: bool = False
    force: bool = False
    recreate: bool = False


class UninstallConfig(_MutatingConfig):
    """Uninstall a release."""

    release_name: ReleaseName
    purge: bool = False


class StatusConfig(ListeningTaskConfig):
    """Report the status of one release version."""

    release_name: ReleaseName
    namespace: Namespace = None
    version: Version


class ContentConfig(ListeningTaskConfig):
    """Report the content of one release version."""

    release_name: ReleaseName
    namespace: Namespace = None
    version: Version


class HistoryConfig(ListeningTaskConfig):
    """Report the revision history of a release."""

    release_name: ReleaseName
    namespace: Namespace = None
    max: Annotated[int, Field(ge=0)] = 0


class ListConfig(ListeningTaskConfig):
    """Report the releases of a namespace."""

    filter: str | None = None
    limit: Annotated[int, Field(ge=0)] = DEFAULT_LIST_LIMIT
    namespace: Namespace = None
    offset: Annotated[int, Field(ge=0)] = 0
    sort_by: SortBy = SortBy.NAME
    sort_order: SortOrder | None = None
    status_codes: tuple[ReleaseStatusCode, ...] = ()


class TestConfig(ListeningTaskConfig):
    """Run the tests of a release."""

    __test__ = False

    release_name: ReleaseName
    namespace: Namespace = None
    timeout: PositiveInt = HELM_TIMEOUT_SECONDS
    logs: bool = False


class PackageConfig(TaskConfig):
    """Package a chart directory into an archive."""

    chart_contents_uri: str
    chart_target_uri: str | None = None


def validation_errors(error: ValidationError) -> dict[str, str]:
    """Flatten a pydantic error into a field -> message map."""
    errors: dict[str, str] = {}
    for item in error.errors():
        field = ".".join(str(part) for part in item["loc"]) or "__root__"
        errors.setdefault(field, item["msg"])
    return errors


ConfigT = TypeVar("ConfigT", bound="TaskConfig")


def parse_task_config(
    model: type[ConfigT],
    data: dict[str, Any],
    *,
    task: str | None = None,
) -> ConfigT:
    """Validate raw field values against a task configuration model.

    Raises:
        TaskConfigurationError: If any field is invalid.
    """
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise TaskConfigurationError(
            "Invalid task configuration",
            errors=validation_errors(e),
            task=task,
        ) from e
