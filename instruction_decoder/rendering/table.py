"""
Box-drawn text tables. Column widths are computed per table from its own cells.
"""

from __future__ import annotations

from typing import Sequence


def _pad(cell: str, width: int, align: str) -> str:
    return cell.rjust(width) if align == ">" else cell.ljust(width)


def render_table(
    headers: Sequence[str],
    rows: Sequence[Sequence[str]],
    align: Sequence[str] | None = None,
) -> list[str]:
    """
    Render rows under headers. align holds "<" or ">" per column (default left).
    Returns the table as lines without trailing newlines.
    """
    align = list(align or ["<"] * len(headers))
    widths = [len(h) for h in headers]
    for row in rows:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(cell))

    def rule(left: str, mid: str, right: str) -> str:
        return left + mid.join("─" * (w + 2) for w in widths) + right

    def line(cells: Sequence[str], aligns: Sequence[str]) -> str:
        return "│ " + " │ ".join(_pad(c, w, a) for c, w, a in zip(cells, widths, aligns)) + " │"

    out = [rule("┌", "┬", "┐"), line(headers, ["<"] * len(headers)), rule("├", "┼", "┤")]
    out.extend(line(row, align) for row in rows)
    out.append(rule("└", "┴", "┘"))
    return out
