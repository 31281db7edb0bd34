"""In-memory representation of a Helm chart."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import yaml

CHART_FILE = "Chart.yaml"
VALUES_FILE = "values.yaml"
TEMPLATES_DIR = "templates"
CHARTS_DIR = "charts"


@dataclass
class ChartMetadata:
    """Contents of ``Chart.yaml``.

    The parsed document is kept in ``raw`` so that writing a chart back out
    preserves fields this model does not name.
    """

    name: str
    version: str = ""
    api_version: str = "v2"
    app_version: str = ""
    description: str = ""
    raw: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_yaml(cls, text: str) -> ChartMetadata:
        """Parse a ``Chart.yaml`` document."""
        data = yaml.safe_load(text) or {}
        if not isinstance(data, dict):
            raise ValueError("Chart.yaml must contain a mapping")
        return cls(
            name=str(data.get("name") or ""),
            version=str(data.get("version") or ""),
            api_version=str(data.get("apiVersion") or "v2"),
            app_version=str(data.get("appVersion") or ""),
            description=str(data.get("description") or ""),
            raw=data,
        )

    def to_yaml(self) -> str:
        """Render as a ``Chart.yaml`` document."""
        data = dict(self.raw)
        data["apiVersion"] = self.api_version
        data["name"] = self.name
        if self.version:
            data["version"] = self.version
        if self.app_version:
            data["appVersion"] = self.app_version
        if self.description:
            data["description"] = self.description
        return yaml.safe_dump(data, sort_keys=False)


@dataclass
class ChartFile:
    """A file inside a chart, addressed by its POSIX path relative to the chart root."""

    path: str
    data: bytes


@dataclass
class Chart:
    """A chart tree: metadata, values, templates, other files, sub-charts."""

    metadata: ChartMetadata
    values: str | None = None  # None when the chart has no values.yaml
    templates: list[ChartFile] = field(default_factory=list)
    files: list[ChartFile] = field(default_factory=list)
    dependencies: list[Chart] = field(default_factory=list)

    @property
    def name(self) -> str:
        """The chart name from its metadata."""
        return self.metadata.name

    def __str__(self) -> str:
        version = f"-{self.metadata.version}" if self.metadata.version else ""
        return f"{self.name}{version}"
