from __future__ import annotations

from typing import Sequence

import typer

COLUMN_GAP = "  "


def column_title(name: str) -> str:
    return name.replace("_", " ").upper()


def cell(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def horizontal(rows: Sequence[object], columns: Sequence[str]) -> str:
    """Render one row per object, with an upper-cased header row.

    The header is always printed, also for an empty ``rows``.
    """
    titles = [column_title(c) for c in columns]
    cells = [[cell(getattr(row, c, None)) for c in columns] for row in rows]
    widths = [
        max([len(title), *(len(r[i]) for r in cells)]) for i, title in enumerate(titles)
    ]

    def line(values: Sequence[str]) -> str:
        return COLUMN_GAP.join(v.ljust(w) for v, w in zip(values, widths)).rstrip()

    lines = [typer.style(line(titles), bold=True)]
    lines.extend(line(r) for r in cells)
    return "\n".join(lines)


def vertical(record: object, fields: Sequence[str], title: str | None = None) -> str:
    labels = [f"{column_title(f)}:" for f in fields]
    width = max(len(label) for label in labels)
    lines = [typer.style(f"== {title}", bold=True)] if title else []
    for label, name in zip(labels, fields):
        lines.append(f"{label.ljust(width)} {cell(getattr(record, name, None))}".rstrip())
    return "\n".join(lines)
