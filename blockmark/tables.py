"""Table markup builders.

Tables are passthrough blocks: the editor stores the markup and never looks
inside. These helpers only produce that markup, either blank or from a
pipe-delimited markdown table.
"""

import re
from dataclasses import dataclass, field
from typing import Optional

from .constants import EditorConstants
from .fragment import escape_text

_SEPARATOR_CELL = re.compile(r"^:?-+:?$")


@dataclass
class TableData:
    rows: list[list[str]] = field(default_factory=list)
    header: Optional[list[str]] = None

    @property
    def columns(self) -> int:
        widths = [len(row) for row in self.rows]
        if self.header is not None:
            widths.append(len(self.header))
        return max(widths, default=0)


def _cell(tag: str, text: str) -> str:
    return f"<{tag}>{escape_text(text) if text else '&nbsp;'}</{tag}>"


def table_markup(table: TableData) -> str:
    """Render table data as a ``note-table`` element."""
    columns = max(table.columns, 1)
    parts = [f'<table class="{EditorConstants.TABLE_CLASS}">']
    if table.header is not None:
        header = table.header + [""] * (columns - len(table.header))
        parts.append("<thead><tr>" + "".join(_cell('th', text) for text in header) + "</tr></thead>")
    parts.append("<tbody>")
    for row in table.rows:
        row = row + [""] * (columns - len(row))
        parts.append("<tr>" + "".join(_cell('td', text) for text in row) + "</tr>")
    parts.append("</tbody></table>")
    return "".join(parts)


def empty_table(rows: int, cols: int) -> str:
    rows = max(1, rows)
    cols = max(1, cols)
    return table_markup(TableData(rows=[[""] * cols for _ in range(rows)]))


def _split_row(line: str) -> list[str]:
    line = line.strip()
    if line.startswith('|'):
        line = line[1:]
    if line.endswith('|') and not line.endswith('\\|'):
        line = line[:-1]
    cells = re.split(r"(?<!\\)\|", line)
    return [cell.strip().replace('\\|', '|') for cell in cells]


def _is_separator(cells: list[str]) -> bool:
    return bool(cells) and all(_SEPARATOR_CELL.match(cell) for cell in cells)


def parse_markdown_table(text: str) -> Optional[TableData]:
    """Parse a pipe table such as::

        | Name | Qty |
        |------|-----|
        | Tea  | 2   |

    Returns None when text is not a table.
    """
    lines = [line for line in text.strip().splitlines() if line.strip()]
    if len(lines) < 2 or not all('|' in line for line in lines):
        return None
    header = _split_row(lines[0])
    if not _is_separator(_split_row(lines[1])):
        return None
    rows = [_split_row(line) for line in lines[2:]]
    width = len(header)
    return TableData(rows=[row[:width] for row in rows], header=header)
