"""
app/mappers/schema_mapper.py

Column resolution for weigh-in CSV files.

A header is matched by name (canonical name or alias, compared after
normalization); a field whose header is absent falls back to a fixed column
position. Resolution runs once per file and yields a :class:`ColumnMapping`
that reads typed cells from every split row.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Sequence

from app.validators.value_parsers import clean

WEIGH_FIELDS: tuple[str, ...] = (
    "animal_id",
    "sex",
    "group",
    "previous_date",
    "previous_weight",
    "current_date",
    "current_weight",
)

# Column 1 of the herd sheets is a free-text name that the pipeline never reads.
FALLBACK_POSITIONS: dict[str, int] = {
    "animal_id": 0,
    "sex": 2,
    "group": 3,
    "previous_date": 4,
    "previous_weight": 5,
    "current_date": 6,
    "current_weight": 7,
}

DEFAULT_COLUMN_ALIASES: dict[str, tuple[str, ...]] = {
    "animal_id": ("animal_id", "animal", "brinco"),
    "sex": ("sexo", "sex"),
    "group": ("grupo", "group", "lote"),
    "previous_date": ("data_peso_anterior", "previous_date", "previous_weigh_date"),
    "previous_weight": ("peso_anterior", "previous_weight"),
    "current_date": ("data_peso_atual", "current_date", "current_weigh_date"),
    "current_weight": ("peso_atual", "current_weight"),
}


def normalize_header(header: str) -> str:
    """
    Normalize a column name for flexible matching.
    """

    return "".join(ch for ch in header.strip().lower() if ch.isalnum())


def detect_delimiter(header_line: str) -> str:
    """
    Pick ``;`` or ``,`` by counting both in the header line; ``;`` wins ties.
    """

    return ";" if header_line.count(";") >= header_line.count(",") else ","


@dataclass(frozen=True)
class ColumnMapping:
    """
    Resolved field -> column index mapping for one CSV file.
    """

    positions: dict[str, int]
    match_strategies: dict[str, str]

    def cell(self, cells: Sequence[str], field: str) -> str:
        """
        Return the trimmed cell for ``field``; short rows yield ``""``.
        """

        index = self.positions[field]
        if index >= len(cells):
            return ""
        return clean(cells[index])

    def read_row(self, cells: Sequence[str]) -> dict[str, str]:
        return {field: self.cell(cells, field) for field in WEIGH_FIELDS}


class SchemaMapper:
    """
    Resolves weigh-in CSV headers into column positions.
    """

    def __init__(
        self,
        *,
        aliases: Mapping[str, Sequence[str]] | None = None,
        fallback_positions: Mapping[str, int] | None = None,
    ) -> None:
        self._aliases: dict[str, tuple[str, ...]] = {
            field: tuple(values)
            for field, values in (aliases or DEFAULT_COLUMN_ALIASES).items()
        }
        self._fallback_positions = dict(fallback_positions or FALLBACK_POSITIONS)

    def resolve_mapping(self, headers: Sequence[str]) -> ColumnMapping:
        """
        Resolve every weigh-in field to a column index: header name or alias
        first, the fixed fallback position otherwise.
        """

        normalized_lookup: dict[str, int] = {}
        for index, header in enumerate(headers):
            normalized = normalize_header(clean(header))
            if normalized and normalized not in normalized_lookup:
                normalized_lookup[normalized] = index

        positions: dict[str, int] = {}
        strategies: dict[str, str] = {}
        for field in WEIGH_FIELDS:
            index = self._find_header_match(field, normalized_lookup)
            if index is not None:
                positions[field] = index
                strategies[field] = "header"
            else:
                positions[field] = self._fallback_positions[field]
                strategies[field] = "position"

        return ColumnMapping(positions=positions, match_strategies=strategies)

    def _find_header_match(self, field: str, normalized_lookup: Mapping[str, int]) -> int | None:
        for candidate in (field, *self._aliases.get(field, ())):
            index = normalized_lookup.get(normalize_header(candidate))
            if index is not None:
                return index
        return None
