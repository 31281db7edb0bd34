"""Chart serialization to gzip-compressed tape archives."""

from __future__ import annotations

import gzip
import io
import tarfile
import time
from pathlib import Path
from types import TracebackType
from typing import BinaryIO

import structlog

from helm_release_tasks.charts.exceptions import ChartWriteError
from helm_release_tasks.charts.models import CHART_FILE, CHARTS_DIR, VALUES_FILE, Chart

logger = structlog.get_logger()

FILE_MODE = 0o644


class TapeArchiveChartWriter:
    """Writes a chart as a ``.tgz`` stream into a binary sink.

    Every entry is placed below a top-level directory named after the
    chart, the layout ``helm package`` produces. ``close`` finishes the
    gzip stream and closes the sink.
    """

    def __init__(self, sink: BinaryIO) -> None:
        if isinstance(sink, io.BufferedIOBase):
            self._sink: BinaryIO = sink
        else:
            self._sink = io.BufferedWriter(sink)  # type: ignore[arg-type]
        self._gzip = gzip.GzipFile(fileobj=self._sink, mode="wb")
        self._closed = False

    def write(self, chart: Chart) -> None:
        """Write ``chart`` and its sub-charts.

        Raises:
            ChartWriteError: If the chart has no name; nothing is written.
        """
        _require_name(chart)
        mtime = time.time()
        with tarfile.open(fileobj=self._gzip, mode="w") as archive:
            self._write_chart(archive, chart, chart.name, mtime)
        logger.debug("chart_written", chart=str(chart))

    def _write_chart(
        self,
        archive: tarfile.TarFile,
        chart: Chart,
        prefix: str,
        mtime: float,
    ) -> None:
        _add(archive, f"{prefix}/{CHART_FILE}", chart.metadata.to_yaml().encode("utf-8"), mtime)
        if chart.values is not None:
            _add(archive, f"{prefix}/{VALUES_FILE}", chart.values.encode("utf-8"), mtime)
        for item in [*chart.templates, *chart.files]:
            _add(archive, f"{prefix}/{item.path}", item.data, mtime)
        for dependency in chart.dependencies:
            _require_name(dependency)
            self._write_chart(archive, dependency, f"{prefix}/{CHARTS_DIR}/{dependency.name}", mtime)

    def close(self) -> None:
        """Finish the gzip stream and close the sink."""
        if self._closed:
            return
        self._closed = True
        try:
            self._gzip.close()
            self._sink.flush()
        finally:
            self._sink.close()

    def __enter__(self) -> TapeArchiveChartWriter:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        try:
            self.close()
        except Exception as close_error:
            if exc is None:
                raise
            exc.add_note(f"Suppressed while closing chart archive: {close_error!r}")


def _require_name(chart: Chart) -> None:
    if not chart.metadata.name:
        raise ChartWriteError("Chart metadata has no name")


def _add(archive: tarfile.TarFile, name: str, data: bytes, mtime: float) -> None:
    info = tarfile.TarInfo(name=name)
    info.size = len(data)
    info.mode = FILE_MODE
    info.mtime = mtime
    archive.addfile(info, io.BytesIO(data))


def write_archive(chart: Chart, path: Path) -> Path:
    """Write ``chart`` to ``path`` as a ``.tgz``, creating parent directories."""
    _require_name(chart)
    path.parent.mkdir(parents=True, exist_ok=True)
    with TapeArchiveChartWriter(path.open("wb")) as writer:
        writer.write(chart)
    return path
