"""
Coordinate normalization and export.

Converts live shape geometry into rounded, type-specific coordinates and
serializes shapes plus their metadata into export text, one record per
(shape, destination id) pair.
"""

import json
import logging
import math
import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Union

from .annotation.state import CircleGeometry, PolygonGeometry, RectGeometry, Shape

logger = logging.getLogger(__name__)

DEFAULT_TABLE = "exhibits"
DEFAULT_COLUMNS = ("map_id", "name", "booth_no", "shape_type", "coordinates")
EXPORT_FORMATS = ("sql", "jsonl")
# Every character str.splitlines() breaks on
LINE_BREAKS = (
    ("\r", 13),
    ("\n", 10),
    ("\x0b", 11),
    ("\x0c", 12),
    ("\x1c", 28),
    ("\x1d", 29),
    ("\x1e", 30),
    ("\x85", 133),
    ("\u2028", 8232),
    ("\u2029", 8233),
)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")

Coordinates = Union[Dict[str, int], List[Dict[str, int]]]


def round_half_away(value: float) -> int:
    """Round to the nearest integer, halves away from zero."""
    magnitude = abs(value)
    rounded = math.floor(magnitude)
    # Compare the exact remainder; magnitude + 0.5 can round up in floating point
    if magnitude - rounded >= 0.5:
        rounded += 1
    return -rounded if value < 0 else rounded


def to_export_coordinates(shape: Shape) -> Coordinates:
    """
    Canonical integer coordinates of a shape.

    Returns:
        ``{x1, y1, x2, y2}`` for rectangles, ``{cx, cy, r}`` for circles and
        a list of ``{x, y}`` for polygons
    """
    geometry = shape.geometry
    if isinstance(geometry, RectGeometry):
        x1 = round_half_away(geometry.x)
        y1 = round_half_away(geometry.y)
        return {
            "x1": x1,
            "y1": y1,
            "x2": x1 + round_half_away(geometry.width),
            "y2": y1 + round_half_away(geometry.height),
        }
    if isinstance(geometry, CircleGeometry):
        return {
            "cx": round_half_away(geometry.cx),
            "cy": round_half_away(geometry.cy),
            "r": round_half_away(geometry.r),
        }
    if isinstance(geometry, PolygonGeometry):
        return [
            {"x": round_half_away(x), "y": round_half_away(y)} for x, y in geometry.points
        ]
    raise TypeError(f"Unsupported geometry: {type(geometry).__name__}")


def coordinates_json(coordinates: Coordinates) -> str:
    """Compact JSON text of canonical coordinates."""
    return json.dumps(coordinates, separators=(",", ":"))


@dataclass
class ExportRecord:
    """One exported row."""

    target_id: int
    name: str
    booth_no: str
    shape_type: str
    coordinates: Coordinates

    def to_dict(self):
        return {
            "target_id": self.target_id,
            "name": self.name,
            "booth_no": self.booth_no,
            "shape_type": self.shape_type,
            "coordinates": self.coordinates,
        }


def build_records(shapes: Iterable[Shape], target_ids: Sequence[int]) -> List[ExportRecord]:
    """Records for every shape and every destination id, in that order."""
    records = []
    for shape in shapes:
        coordinates = to_export_coordinates(shape)
        for target_id in target_ids:
            records.append(
                ExportRecord(
                    target_id=target_id,
                    name=shape.name,
                    booth_no=shape.booth_no,
                    shape_type=shape.type.value,
                    coordinates=coordinates,
                )
            )
    return records


def quote_literal(value) -> str:
    """
    SQL string literal with embedded single quotes doubled.

    Line breaks are spliced in with CHR() so a statement never spans lines.
    """
    text = "" if value is None else str(value)
    text = text.replace("'", "''")
    for char, code in LINE_BREAKS:
        text = text.replace(char, f"'||CHR({code})||'")
    return "'" + text + "'"


def _check_identifier(identifier: str) -> str:
    if not _IDENTIFIER.match(identifier):
        raise ValueError(f"Invalid SQL identifier: {identifier!r}")
    return identifier


def _sql_number(value) -> str:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return quote_literal(value)
    return str(value)


def format_sql(
    records: Iterable[ExportRecord],
    table: str = DEFAULT_TABLE,
    columns: Sequence[str] = DEFAULT_COLUMNS,
) -> str:
    """
    Render records as INSERT statements, one per line.

    Raises:
        ValueError: If the table or a column is not a plain identifier
    """
    table = _check_identifier(table)
    if len(columns) != 5:
        raise ValueError("Exactly five columns are required")
    column_list = ", ".join(_check_identifier(column) for column in columns)
    lines = []
    for record in records:
        values = ",".join(
            [
                _sql_number(record.target_id),
                quote_literal(record.name),
                quote_literal(record.booth_no),
                quote_literal(record.shape_type),
                quote_literal(coordinates_json(record.coordinates)),
            ]
        )
        lines.append(f"INSERT INTO {table} ({column_list}) VALUES ({values});")
    return "\n".join(lines)


def _json_line(record: ExportRecord) -> str:
    line = json.dumps(record.to_dict(), ensure_ascii=False)
    # The encoder escapes control characters but leaves these raw
    for char, code in LINE_BREAKS:
        line = line.replace(char, f"\\u{code:04x}")
    return line


def format_jsonl(records: Iterable[ExportRecord]) -> str:
    """Render records as JSON lines, one record per line."""
    return "\n".join(_json_line(record) for record in records)


def export_all(
    shapes: Iterable[Shape],
    target_ids: Sequence[int],
    fmt: str = "sql",
    table: str = DEFAULT_TABLE,
    columns: Optional[Sequence[str]] = None,
) -> str:
    """
    Serialize shapes for every destination id.

    Args:
        shapes: Shapes to export, in order
        target_ids: Destination identifiers; each shape yields one record per id
        fmt: "sql" or "jsonl"
        table: Target table for the SQL format
        columns: Column names for the SQL format

    Returns:
        Export text, records separated by newlines
    """
    if fmt not in EXPORT_FORMATS:
        raise ValueError(f"Unknown export format: {fmt!r}")
    records = build_records(shapes, target_ids)
    logger.debug("Exporting %d records as %s", len(records), fmt)
    if fmt == "jsonl":
        return format_jsonl(records)
    return format_sql(records, table=table, columns=columns or DEFAULT_COLUMNS)
