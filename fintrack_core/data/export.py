# =============================================================================
# fintrack_core/data/export.py - CSV text for report tables
# =============================================================================
from __future__ import annotations
import csv
from pathlib import Path
from typing import Any, Optional, Sequence, Union

import pandas as pd


def _cell_text(cell: Any) -> str:
    if cell is None:
        return ""
    if isinstance(cell, bool):
        return "true" if cell else "false"
    return str(cell)


def export_table_to_csv(
    headers: Sequence[str],
    rows: Sequence[Sequence[Any]],
    filename: Optional[Union[str, Path]] = None,
) -> str:
    """
    Render a table as CSV text.

    The header line is the headers joined with commas, unquoted. Every row
    field is double-quoted with inner quotes doubled, and None becomes an
    empty quoted field. Lines are joined with a bare newline.

    Args:
        headers: Column titles
        rows: Table rows (ragged rows are padded with empty fields)
        filename: When given, also write ``{filename}.csv`` as UTF-8

    Returns:
        The CSV text
    """
    lines = [",".join(str(h) for h in headers)]

    if rows:
        df = pd.DataFrame([[_cell_text(cell) for cell in row] for row in rows], dtype=object)
        body = df.to_csv(
            index=False,
            header=False,
            quoting=csv.QUOTE_ALL,
            lineterminator="\n",
            na_rep="",
        )
        # Quoted fields may hold newlines, so only the trailing terminator goes
        lines.append(body[:-1] if body.endswith("\n") else body)

    content = "\n".join(lines)

    if filename is not None:
        path = Path(f"{filename}.csv")
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")

    return content
