"""
Utility functions for data-redactor.

Includes encoding detection, binary sniffing, safe file reading and path
display helpers used by the file scanner and CLI.
"""

from __future__ import annotations

from pathlib import Path

import chardet


def detect_encoding(file_path: Path, sample_size: int = 8192) -> str:
    """
    Detect the encoding of a file.

    Strategy:
    1. Check for BOM markers first
    2. Try UTF-8
    3. Fall back to chardet only if UTF-8 fails

    Args:
        file_path: Path to the file
        sample_size: Number of bytes to sample for detection

    Returns:
        Detected encoding name (e.g., 'utf-8', 'latin-1')
    """
    try:
        with open(file_path, "rb") as f:
            sample = f.read(sample_size)
    except OSError:
        return "utf-8"

    if not sample:
        return "utf-8"

    if sample.startswith(b"\xef\xbb\xbf"):
        return "utf-8-sig"
    if sample.startswith(b"\xff\xfe"):
        return "utf-16-le"
    if sample.startswith(b"\xfe\xff"):
        return "utf-16-be"

    try:
        sample.decode("utf-8")
        return "utf-8"
    except UnicodeDecodeError:
        pass

    encoding = chardet.detect(sample).get("encoding")
    if encoding is None:
        return "utf-8"

    encoding = encoding.lower()
    if encoding in ("ascii", "utf-8", "utf8"):
        return "utf-8"

    return encoding


def is_binary_file(file_path: Path, sample_size: int = 8192) -> bool:
    """
    Check if a file appears to be binary.

    Uses null byte detection and the ratio of printable bytes.
    """
    try:
        with open(file_path, "rb") as f:
            sample = f.read(sample_size)
    except OSError:
        return True  # Unreadable files are treated as binary

    if not sample:
        return False

    # UTF-16 text carries null bytes but starts with a BOM
    if sample.startswith((b"\xff\xfe", b"\xfe\xff")):
        return False

    if b"\x00" in sample:
        return True

    # Bytes >= 0x80 count as text so UTF-8 content is not misclassified
    printable_count = sum(
        1 for b in sample
        if 32 <= b <= 126 or b in (9, 10, 12, 13) or b >= 128
    )

    return printable_count / len(sample) < 0.70


def read_file_safe(file_path: Path, encoding: str | None = None) -> tuple[str, str]:
    """
    Read a text file with encoding detection.

    Tries the given encoding (or strict UTF-8), then the detected encoding
    with replacement characters.

    Args:
        file_path: Path to the file
        encoding: Encoding to use (None for auto-detect)

    Returns:
        Tuple of (content, encoding_used)

    Raises:
        OSError: If the file cannot be opened
    """
    if encoding is not None:
        try:
            with open(file_path, encoding=encoding, errors="replace") as f:
                return f.read(), encoding
        except LookupError:
            pass  # Unknown encoding, fall through to auto-detect

    try:
        with open(file_path, encoding="utf-8", errors="strict") as f:
            return f.read(), "utf-8"
    except UnicodeDecodeError:
        pass

    detected = detect_encoding(file_path)
    try:
        with open(file_path, encoding=detected, errors="replace") as f:
            return f.read(), detected
    except LookupError:
        with open(file_path, encoding="utf-8", errors="replace") as f:
            return f.read(), "utf-8"


def normalize_path(path: str) -> str:
    """Normalize a path for consistent comparison (use forward slashes)."""
    return path.replace("\\", "/")


def truncate_path(path: str, max_length: int = 60, prefix: str = "...") -> str:
    """Shorten a path from the left so that its tail stays visible."""
    if len(path) <= max_length:
        return path
    return prefix + path[-(max_length - len(prefix)):]
