"""Chart loading from directories, archives, and URLs.

Reads a chart's on-disk or remote representation into a ``Chart`` tree.
Directories honour ``.helmignore``; archives and remote charts are read
as gzip tape archives whose entries live under a single top-level
directory.
"""

from __future__ import annotations

import fnmatch
import io
import tarfile
from collections import defaultdict
from pathlib import Path, PurePosixPath
from types import TracebackType

import httpx
import structlog

from helm_release_tasks.charts.exceptions import ChartLoadError
from helm_release_tasks.charts.models import (
    CHART_FILE,
    CHARTS_DIR,
    TEMPLATES_DIR,
    VALUES_FILE,
    Chart,
    ChartFile,
    ChartMetadata,
)
from helm_release_tasks.charts.uris import is_remote, to_path

logger = structlog.get_logger()

HELMIGNORE_FILE = ".helmignore"
ARCHIVE_SUFFIXES = (".tgz", ".tar.gz")
DOWNLOAD_TIMEOUT_SECONDS = 30.0


# ---------------------------------------------------------------------------
# .helmignore
# ---------------------------------------------------------------------------


def parse_helmignore(text: str) -> list[str]:
    """Return the ignore patterns of a ``.helmignore`` document.

    Blank lines, comments and negations are skipped.
    """
    patterns = []
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith(("#", "!")):
            continue
        patterns.append(line)
    return patterns


def is_ignored(relative_path: str, patterns: list[str]) -> bool:
    """Whether a chart-relative POSIX path matches any ignore pattern.

    A pattern matches the whole path, or any single path component. A
    trailing ``/`` restricts a pattern to directories.
    """
    parts = PurePosixPath(relative_path).parts
    for raw in patterns:
        directory_only = raw.endswith("/")
        pattern = raw.rstrip("/").lstrip("/")
        if not pattern:
            continue
        if "/" in pattern:
            candidates = ["/".join(parts[: i + 1]) for i in range(len(parts))]
        else:
            candidates = list(parts)
        if directory_only:
            # Only ancestors of the file are directories
            candidates = candidates[:-1]
        if any(fnmatch.fnmatchcase(c, pattern) for c in candidates):
            return True
    return False


# ---------------------------------------------------------------------------
# Entry assembly
# ---------------------------------------------------------------------------


def build_chart(entries: dict[str, bytes], source: str) -> Chart:
    """Assemble a chart tree from chart-relative paths and their contents.

    Args:
        entries: Mapping of POSIX path (relative to the chart root) to bytes.
        source: Where the entries came from, for error messages.

    Returns:
        The chart tree.

    Raises:
        ChartLoadError: If ``Chart.yaml`` is missing or malformed.
    """
    if CHART_FILE not in entries:
        raise ChartLoadError(f"{CHART_FILE} not found", source=source)
    try:
        metadata = ChartMetadata.from_yaml(entries[CHART_FILE].decode("utf-8"))
    except (ValueError, UnicodeDecodeError) as e:
        raise ChartLoadError(f"Invalid {CHART_FILE}: {e}", source=source) from e

    chart = Chart(metadata=metadata)
    subcharts: dict[str, dict[str, bytes]] = defaultdict(dict)

    for path in sorted(entries):
        data = entries[path]
        parts = PurePosixPath(path).parts
        if path == CHART_FILE:
            continue
        if path == VALUES_FILE:
            try:
                chart.values = data.decode("utf-8")
            except UnicodeDecodeError as e:
                raise ChartLoadError(f"Invalid {VALUES_FILE}: {e}", source=source) from e
        elif parts[0] == TEMPLATES_DIR:
            chart.templates.append(ChartFile(path=path, data=data))
        elif parts[0] == CHARTS_DIR and len(parts) > 2:
            subcharts[parts[1]]["/".join(parts[2:])] = data
        elif parts[0] == CHARTS_DIR and path.endswith(ARCHIVE_SUFFIXES):
            chart.dependencies.append(load_archive(data, source=f"{source}!{path}"))
        else:
            chart.files.append(ChartFile(path=path, data=data))

    for name in sorted(subcharts):
        chart.dependencies.append(build_chart(subcharts[name], source=f"{source}!charts/{name}"))

    return chart


def read_directory(directory: Path) -> dict[str, bytes]:
    """Read every non-ignored file below a chart directory."""
    helmignore = directory / HELMIGNORE_FILE
    patterns = parse_helmignore(helmignore.read_text()) if helmignore.is_file() else []

    entries: dict[str, bytes] = {}
    for file in sorted(directory.rglob("*")):
        if not file.is_file():
            continue
        relative = file.relative_to(directory).as_posix()
        if relative != CHART_FILE and is_ignored(relative, patterns):
            continue
        entries[relative] = file.read_bytes()
    return entries


def load_archive(data: bytes, *, source: str) -> Chart:
    """Load a chart from gzip tape archive bytes.

    Raises:
        ChartLoadError: If the archive is unreadable or holds no chart.
    """
    entries: dict[str, bytes] = {}
    try:
        with tarfile.open(fileobj=io.BytesIO(data), mode="r:gz") as archive:
            for member in archive:
                if not member.isfile():
                    continue
                parts = PurePosixPath(member.name).parts
                if len(parts) < 2:
                    continue
                extracted = archive.extractfile(member)
                if extracted is None:
                    continue
                with extracted:
                    entries["/".join(parts[1:])] = extracted.read()
    except (tarfile.TarError, OSError, EOFError) as e:
        raise ChartLoadError(f"Unreadable chart archive: {e}", source=source) from e
    return build_chart(entries, source)


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------


class URLChartLoader:
    """Loads charts from ``file:`` URIs, plain paths, and HTTP(S) URLs.

    Usable as a context manager; the HTTP client it creates is closed on
    exit. A client passed in by the caller is left open.
    """

    def __init__(
        self,
        http_client: httpx.Client | None = None,
        *,
        timeout: float = DOWNLOAD_TIMEOUT_SECONDS,
    ) -> None:
        self._http = http_client
        self._owns_http = http_client is None
        self._timeout = timeout

    def load(self, uri: str | Path) -> Chart:
        """Load the chart identified by ``uri``.

        Raises:
            ChartLoadError: If the source cannot be read or holds no chart.
        """
        source = str(uri)
        logger.debug("loading_chart", source=source)
        if is_remote(uri):
            chart = load_archive(self._download(source), source=source)
        else:
            chart = self._load_local(to_path(uri), source)
        logger.info("chart_loaded", source=source, chart=str(chart))
        return chart

    def _load_local(self, path: Path, source: str) -> Chart:
        if path.is_dir():
            try:
                return build_chart(read_directory(path), source)
            except OSError as e:
                raise ChartLoadError(f"Unreadable chart directory: {e}", source=source) from e
        if path.is_file():
            try:
                data = path.read_bytes()
            except OSError as e:
                raise ChartLoadError(f"Unreadable chart archive: {e}", source=source) from e
            return load_archive(data, source=source)
        raise ChartLoadError("Chart source does not exist", source=source)

    def read_text(self, uri: str | Path) -> str:
        """Read a UTF-8 document, such as a values file, from ``uri``.

        Raises:
            ChartLoadError: If the document cannot be read.
        """
        source = str(uri)
        if is_remote(uri):
            data = self._download(source)
        else:
            try:
                data = to_path(uri).read_bytes()
            except OSError as e:
                raise ChartLoadError(f"Unreadable document: {e}", source=source) from e
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ChartLoadError(f"Document is not UTF-8: {e}", source=source) from e

    def _download(self, url: str) -> bytes:
        if self._http is None:
            self._http = httpx.Client(timeout=self._timeout, follow_redirects=True)
        try:
            response = self._http.get(url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise ChartLoadError(f"Chart download failed: {e}", source=url) from e
        return response.content

    def close(self) -> None:
        """Close the HTTP client if this loader created it."""
        if self._owns_http and self._http is not None:
            http, self._http = self._http, None
            http.close()

    def __enter__(self) -> URLChartLoader:
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
            exc.add_note(f"Suppressed while closing chart loader: {close_error!r}")
