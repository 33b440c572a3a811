from pr_reviewer.models.diff import BlockLine, ChangedBlock


DEFAULT_CONTEXT_RADIUS = 2


def _group_runs(added_lines: list[int]) -> list[tuple[int, int]]:
    """Group sorted line numbers into runs of consecutive lines."""
    runs: list[tuple[int, int]] = []
    for number in added_lines:
        if runs and number - runs[-1][1] <= 1:
            runs[-1] = (runs[-1][0], number)
        else:
            runs.append((number, number))
    return runs


def build_changed_blocks(
    added_lines: list[int],
    file_lines: list[str],
    radius: int = DEFAULT_CONTEXT_RADIUS,
) -> list[ChangedBlock]:
    """Build context-padded blocks around runs of changed lines.

    Windows are clamped to the file and merged when they overlap or touch,
    so the returned blocks are disjoint and ascending.
    """
    file_length = len(file_lines)
    numbers = sorted({n for n in added_lines if n > 0})
    if not numbers or file_length == 0:
        return []

    radius = max(0, radius)
    windows: list[tuple[int, int]] = []
    for run_start, run_end in _group_runs(numbers):
        if run_start > file_length:
            continue
        start = max(1, run_start - radius)
        end = min(file_length, run_end + radius)
        if windows and start <= windows[-1][1] + 1:
            windows[-1] = (windows[-1][0], max(windows[-1][1], end))
        else:
            windows.append((start, end))

    changed = set(numbers)
    return [
        ChangedBlock(
            start=start,
            end=end,
            lines=[
                BlockLine(number=n, text=file_lines[n - 1], changed=n in changed)
                for n in range(start, end + 1)
            ],
        )
        for start, end in windows
    ]
