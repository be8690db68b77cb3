"""Extract notes from every image in a directory.

``BatchRunner`` owns the worker pool for the duration of a ``with``
block and shuts it down on exit, including when a fatal error stops the
batch early.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Iterator

from constants import SUPPORTED_FORMATS
from errors import MemoryInkError, UnsupportedFormatError
from extractor import extract_report

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BatchConfig:
    """How a directory is scanned and processed.

    Attributes:
        recursive: Descend into subdirectories.
        fail_fast: Stop at the first file that cannot be read instead of
            recording the error and carrying on. Unsupported formats
            never stop a batch.
        workers: Number of worker threads; 1 processes files inline.
        extensions: Lowercase suffixes to pick up.
    """

    recursive: bool = False
    fail_fast: bool = False
    workers: int = 1
    extensions: frozenset[str] = field(default_factory=lambda: frozenset(SUPPORTED_FORMATS))

    def __post_init__(self) -> None:
        if self.workers < 1:
            raise ValueError("workers must be at least 1")


@dataclass
class BatchItem:
    """Outcome for one file: a report, or the error that prevented one."""

    path: Path
    report: dict[str, Any] | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, Any]:
        if self.report is not None:
            return self.report
        return {"file": str(self.path), "note": None, "isEncrypted": False, "error": self.error}


def read_report(path: Path) -> dict[str, Any]:
    """Strict ``extract_report``: unreadable files raise instead of reporting no note."""
    return extract_report(path, strict=True)


def iter_images(
    directory: Path,
    recursive: bool = False,
    extensions: frozenset[str] | set[str] = frozenset(SUPPORTED_FORMATS),
) -> Iterator[Path]:
    """
    Yield image files under *directory* in a stable (sorted) order.

    Raises:
        NotADirectoryError: If *directory* is not an existing directory.
    """
    if not directory.is_dir():
        raise NotADirectoryError(f"Directory not found: {directory}")
    pattern = "**/*" if recursive else "*"
    for path in sorted(directory.glob(pattern)):
        if path.is_file() and path.suffix.lower() in extensions:
            yield path


class BatchRunner:
    """Run note extraction over many files.

    Usage::

        with BatchRunner(BatchConfig(recursive=True, workers=4)) as runner:
            items = runner.run(Path("photos"))
    """

    def __init__(
        self,
        config: BatchConfig | None = None,
        extract: Callable[[Path], dict[str, Any]] = read_report,
    ) -> None:
        self.config = config or BatchConfig()
        self._extract = extract
        self._executor: ThreadPoolExecutor | None = None

    def __enter__(self) -> BatchRunner:
        if self.config.workers > 1:
            self._executor = ThreadPoolExecutor(
                max_workers=self.config.workers, thread_name_prefix="memoryink"
            )
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True, cancel_futures=True)
            self._executor = None

    def process(self, path: Path) -> BatchItem:
        """
        Extract one file.

        Raises:
            MemoryInkError, OSError: When ``fail_fast`` is set and the
                file could not be read. Unsupported formats are always
                recorded instead.
        """
        try:
            return BatchItem(path, report=self._extract(path))
        except UnsupportedFormatError as e:
            logger.warning("Skipping %s: %s", path, e)
            return BatchItem(path, error=str(e))
        except (MemoryInkError, OSError) as e:
            if self.config.fail_fast:
                raise
            logger.error("Failed to process %s: %s", path, e)
            return BatchItem(path, error=str(e))

    def run(self, directory: Path) -> list[BatchItem]:
        """Process every image under *directory*, in path order."""
        paths = list(iter_images(directory, self.config.recursive, self.config.extensions))
        logger.info("Found %d image(s) in %s", len(paths), directory)

        if self._executor is None:
            return [self.process(path) for path in paths]

        futures: list[Future[BatchItem]] = [
            self._executor.submit(self.process, path) for path in paths
        ]
        items: list[BatchItem] = []
        try:
            for future in futures:
                items.append(future.result())
        except BaseException:
            for future in futures:
                future.cancel()
            raise
        return items
