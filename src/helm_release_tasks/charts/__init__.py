"""Chart load and package helpers."""

from helm_release_tasks.charts.exceptions import ChartError, ChartLoadError, ChartWriteError
from helm_release_tasks.charts.loader import URLChartLoader
from helm_release_tasks.charts.models import Chart, ChartFile, ChartMetadata
from helm_release_tasks.charts.writer import TapeArchiveChartWriter, write_archive

__all__ = [
    "Chart",
    "ChartError",
    "ChartFile",
    "ChartLoadError",
    "ChartMetadata",
    "ChartWriteError",
    "TapeArchiveChartWriter",
    "URLChartLoader",
    "write_archive",
]
