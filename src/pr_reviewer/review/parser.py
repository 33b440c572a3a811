# src/pr_reviewer/review/parser.py
import difflib
import logging
import re
from collections.abc import Iterator
from unidiff import PatchSet
from unidiff.errors import UnidiffParseError
from pr_reviewer.models.diff import DiffAnalysis, LineKind, LineRecord


logger = logging.getLogger(__name__)

HUNK_HEADER = re.compile(r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@")


def split_lines(content: str | None) -> list[str]:
    """Split file content into lines numbered the way diff hunks number them."""
    if not content:
        return []
    lines = content.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line.rstrip("\r") for line in lines]


def iter_line_records(diff_text: str | None) -> Iterator[LineRecord]:
    """Walk a single-file unified diff and yield coordinates for hunk body lines.

    Lines before the first hunk header are ignored. A blank line inside a
    hunk advances only the new-file cursor and yields nothing.
    """
    if not diff_text:
        return

    in_hunk = False
    old_cursor = 0
    new_cursor = 0

    for raw in diff_text.split("\n"):
        line = raw.rstrip("\r")

        if line.startswith("@@"):
            match = HUNK_HEADER.match(line)
            if match is None:
                logger.debug(f"Ignoring malformed hunk header: {line[:80]!r}")
                in_hunk = False
                continue
            old_cursor = int(match.group(1)) - 1
            new_cursor = int(match.group(3)) - 1
            in_hunk = True
            continue

        if line.startswith("diff --git"):
            in_hunk = False
            continue

        if not in_hunk:
            continue

        if line == "":
            new_cursor += 1
            continue

        prefix, text = line[0], line[1:]
        if prefix == "+":
            new_cursor += 1
            yield LineRecord(kind=LineKind.ADDED, text=text, new_line=new_cursor)
        elif prefix == "-":
            old_cursor += 1
            yield LineRecord(kind=LineKind.REMOVED, text=text, old_line=old_cursor)
        elif prefix == " ":
            old_cursor += 1
            new_cursor += 1
            yield LineRecord(kind=LineKind.CONTEXT, text=text, old_line=old_cursor, new_line=new_cursor)
        # "\ No newline at end of file" and anything else carries no coordinates


def parse_file_diff(diff_text: str | None) -> DiffAnalysis:
    """Parse one file's unified diff into added/removed line coordinates.

    Never raises: absent or malformed input yields an empty analysis.
    """
    changed_content: dict[int, str] = {}
    removed: set[int] = set()

    for record in iter_line_records(diff_text):
        if record.kind is LineKind.ADDED:
            changed_content[record.new_line] = record.text
        elif record.kind is LineKind.REMOVED:
            removed.add(record.old_line)

    added_lines = sorted(changed_content)
    return DiffAnalysis(
        added_lines=added_lines,
        removed_lines=sorted(removed),
        changed_content={number: changed_content[number] for number in added_lines},
    )


def split_patch(patch_text: str | None) -> dict[str, str]:
    """Split a multi-file patch into per-file diff text keyed by target path."""
    if not patch_text or not patch_text.strip():
        return {}

    try:
        patch = PatchSet(patch_text)
    except UnidiffParseError as e:
        logger.warning(f"Could not split patch: {e}")
        return {}

    files = {}
    for patched_file in patch:
        if patched_file.is_removed_file:
            continue
        files[patched_file.path] = str(patched_file)

    return files


def build_fallback_diff(base_content: str, target_content: str, file_path: str) -> str:
    """Build a unified diff between two versions of a file."""
    # Line numbering must agree with split_lines, so no str.splitlines()
    base_lines = split_lines(base_content)
    target_lines = split_lines(target_content)

    return "\n".join(
        difflib.unified_diff(
            base_lines,
            target_lines,
            fromfile=f"a/{file_path.lstrip('/')}",
            tofile=f"b/{file_path.lstrip('/')}",
            lineterm="",
        )
    )
