"""File scanner module for data-redactor.

Collects files from paths (files or directories), runs their text content
through a Redactor and reports which files contain sensitive data.
Uses pathspec with GitWildMatchPattern for exclude patterns and a thread pool
for concurrent file I/O.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Iterable, Mapping
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pathspec
from pathspec.patterns import GitWildMatchPattern

from .config import (
    DEFAULT_SCAN_EXCLUDE_PATTERNS,
    DEFAULT_SCAN_MAX_FILE_SIZE,
    REDACTED_KEYS_KEY,
    REDACTED_MARKER_KEY,
)
from .entropy import byte_length
from .redactor import Redactor
from .utils import is_binary_file, normalize_path, read_file_safe

logger = logging.getLogger(__name__)

STATUS_SKIPPED = "skipped"
STATUS_FINDINGS = "findings"
STATUS_CLEAN = "clean"


@dataclass
class ScanResult:
    """Outcome of scanning a single file."""

    path: str
    findings: list[dict[str, Any]] = field(default_factory=list)
    profile: str | None = None
    skipped: bool = False
    error: str | None = None

    @property
    def has_findings(self) -> bool:
        return len(self.findings) > 0

    @property
    def status(self) -> str:
        if self.skipped:
            return STATUS_SKIPPED
        return STATUS_FINDINGS if self.has_findings else STATUS_CLEAN

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON output."""
        return {
            "path": self.path,
            "status": self.status,
            "findings_count": len(self.findings),
            "findings": list(self.findings),
            "profile": self.profile,
            "error": self.error,
        }


def _is_eligible(file_path: Path, max_file_size: int) -> bool:
    """Check that a file is readable and within the size limit."""
    if not os.access(file_path, os.R_OK):
        return False
    try:
        return file_path.stat().st_size <= max_file_size
    except OSError:
        return False


def collect_files(
    paths: Iterable[Path | str],
    exclude_patterns: Iterable[str] | None = None,
    max_file_size: int = DEFAULT_SCAN_MAX_FILE_SIZE,
) -> list[Path]:
    """
    Collect eligible files from files and directories.

    Files given directly are only checked for readability and size. Directories
    are walked recursively (dot files included); files whose relative path
    matches an exclude pattern are skipped. Paths that do not exist are ignored.

    Args:
        paths: Files or directories to collect from
        exclude_patterns: Gitignore-style patterns (default: lock, minified, vendor dirs)
        max_file_size: Maximum file size in bytes

    Returns:
        Unique resolved file paths in sorted order
    """
    if exclude_patterns is None:
        exclude_patterns = DEFAULT_SCAN_EXCLUDE_PATTERNS

    exclude_spec = pathspec.PathSpec.from_lines(GitWildMatchPattern, list(exclude_patterns))

    files: set[Path] = set()

    for raw_path in paths:
        path = Path(raw_path)

        if path.is_file():
            if _is_eligible(path, max_file_size):
                files.add(path.resolve())
            continue

        if not path.is_dir():
            continue

        for dirpath, _dirnames, filenames in os.walk(path):
            for filename in filenames:
                file_path = Path(dirpath) / filename
                rel_path = normalize_path(str(file_path.relative_to(path)))

                if exclude_spec.match_file(rel_path):
                    continue

                if file_path.is_file() and _is_eligible(file_path, max_file_size):
                    files.add(file_path.resolve())

    return sorted(files)


class Scanner:
    """
    Scans files for sensitive content using a Redactor.

    The file content is redacted as a single string; any change to it is a
    finding.
    """

    def __init__(self, redactor: Redactor | None = None, max_workers: int | None = None):
        """
        Initialize the scanner.

        Args:
            redactor: Redactor to use (default: one with built-in profiles)
            max_workers: Maximum number of worker threads (default: executor default)
        """
        self.redactor = redactor if redactor is not None else Redactor()
        self.max_workers = max_workers

    def _profile_name(self, profile: str | None) -> str:
        return profile if profile is not None else self.redactor.settings.default_profile

    def scan_file(self, path: Path | str, profile: str | None = None) -> ScanResult:
        """
        Scan a single file.

        Args:
            path: File to scan
            profile: Redaction profile (default: the redactor's default profile)

        Returns:
            ScanResult; unreadable and binary files come back skipped

        Raises:
            ProfileNotFoundError: If the profile is not configured
        """
        file_path = Path(path)
        profile_name = self._profile_name(profile)

        if not file_path.is_file():
            logger.warning("Unable to read %s: not a file", file_path)
            return ScanResult(
                path=str(file_path),
                profile=profile_name,
                skipped=True,
                error="File unreadable",
            )

        if is_binary_file(file_path):
            logger.debug("Skipping binary file %s", file_path)
            return ScanResult(
                path=str(file_path),
                profile=profile_name,
                skipped=True,
                error="Binary file",
            )

        try:
            content, _encoding = read_file_safe(file_path)
        except OSError as e:
            logger.warning("Unable to read %s: %s", file_path, e)
            return ScanResult(
                path=str(file_path),
                profile=profile_name,
                skipped=True,
                error="File unreadable",
            )

        redacted = self.redactor.redact(content, profile)
        findings = self._findings_for(content, redacted, profile_name)

        logger.debug("Scanned %s: %d finding(s)", file_path, len(findings))

        return ScanResult(path=str(file_path), findings=findings, profile=profile_name)

    def _findings_for(self, original: str, redacted: Any, profile: str) -> list[dict[str, Any]]:
        """Derive findings from the difference between content and its redaction."""
        if isinstance(redacted, Mapping):
            if redacted.get(REDACTED_MARKER_KEY) is not True:
                return []
            return [
                {"type": "redacted_key", "key": key, "profile": profile}
                for key in redacted.get(REDACTED_KEYS_KEY, [])
            ]

        if isinstance(redacted, str) and redacted != original:
            return [
                {
                    "type": "full_content_redacted",
                    "reason": "Entire content was redacted",
                    "original_length": byte_length(original),
                    "profile": profile,
                }
            ]

        return []

    def scan_paths(
        self,
        paths: Iterable[Path | str],
        profile: str | None = None,
        exclude_patterns: Iterable[str] | None = None,
        max_file_size: int = DEFAULT_SCAN_MAX_FILE_SIZE,
        progress_callback: Callable[[int, int], None] | None = None,
    ) -> list[ScanResult]:
        """
        Collect files from paths and scan them concurrently.

        Args:
            paths: Files or directories to scan
            profile: Redaction profile (default: the redactor's default profile)
            exclude_patterns: Gitignore-style patterns applied inside directories
            max_file_size: Maximum file size in bytes
            progress_callback: Called with (completed, total) after each file

        Returns:
            ScanResults sorted by path
        """
        files = collect_files(paths, exclude_patterns, max_file_size)

        # Fail fast on an unknown profile before spawning workers
        self.redactor.settings.resolve_profile(profile)

        results: list[ScanResult] = []
        total = len(files)

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = {executor.submit(self.scan_file, f, profile): f for f in files}

            for completed, future in enumerate(as_completed(futures), start=1):
                results.append(future.result())
                if progress_callback:
                    progress_callback(completed, total)

        results.sort(key=lambda r: r.path)
        return results
