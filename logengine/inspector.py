"""Inspector logic: list, read, verify and search log segments."""

import json
import os

_SEGMENT_SUFFIXES = (".log", ".jsonl")


def list_segments(log_dir: str) -> list[str]:
    """Return log segment names (regular files, not links) sorted by name."""
    names = []
    for name in os.listdir(log_dir):
        path = os.path.join(log_dir, name)
        if os.path.islink(path) or not os.path.isfile(path):
            continue
        if name.endswith(_SEGMENT_SUFFIXES) or ".log." in name:
            names.append(name)
    names.sort()
    return names


def read_segment(log_dir: str, filename: str) -> str:
    path = os.path.join(log_dir, filename)
    if not os.path.exists(path):
        raise FileNotFoundError(f"File not found: {path}")
    with open(path, "r", encoding="utf-8", errors="replace") as f:
        return f.read()


def verify_segment(path: str) -> list[tuple[int, str]]:
    """Check that every line of *path* is one complete JSON object.

    Returns ``(line_number, problem)`` pairs; an empty list means the
    segment is clean.
    """
    problems = []
    with open(path, "rb") as f:
        data = f.read()
    if data and not data.endswith(b"\n"):
        problems.append((data.count(b"\n") + 1, "last line is not newline-terminated"))
    for line_num, raw in enumerate(data.splitlines(), 1):
        try:
            record = json.loads(raw)
        except ValueError as exc:
            problems.append((line_num, f"invalid JSON: {exc}"))
            continue
        if not isinstance(record, dict):
            problems.append((line_num, "line is not a JSON object"))
        elif "time" not in record or "level" not in record:
            problems.append((line_num, "missing time or level"))
    return problems


def search_segments(log_dir: str, text: str) -> list[tuple[str, int, str]]:
    """Search for text across all segments. Returns (filename, line_num, line) tuples."""
    results = []
    for filename in list_segments(log_dir):
        path = os.path.join(log_dir, filename)
        try:
            with open(path, "r", encoding="utf-8", errors="replace") as f:
                for line_num, line in enumerate(f, 1):
                    if text in line:
                        results.append((filename, line_num, line.rstrip("\n")))
        except OSError:
            continue
    return results
