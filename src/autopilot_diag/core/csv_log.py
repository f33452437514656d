"""Append-only CSV log files."""

import csv
from collections.abc import Iterable, Sequence
from pathlib import Path


def append_rows(path: Path, header: Sequence[str], rows: Iterable[Sequence[str]]) -> int:
    """Append rows to a CSV file, writing the header only when it is new.

    Existing rows are never rewritten. The parent directory is created if
    it is missing.

    Args:
        path: Destination CSV file.
        header: Column names, written when the file is missing or empty.
        rows: Rows to append, in order.

    Returns:
        Number of data rows written.

    Raises:
        OSError: The directory or file could not be written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    write_header = not path.exists() or path.stat().st_size == 0

    count = 0
    with open(path, "a", encoding="utf-8", newline="") as f:
        writer = csv.writer(f)
        if write_header:
            writer.writerow(header)
        for row in rows:
            writer.writerow(row)
            count += 1
    return count
