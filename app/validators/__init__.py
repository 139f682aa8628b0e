"""
app/validators package marker.
"""

from app.validators.value_parsers import (
    days_between,
    format_celsius,
    format_date,
    format_kg,
    parse_date,
    parse_number,
)

__all__ = [
    "days_between",
    "format_celsius",
    "format_date",
    "format_kg",
    "parse_date",
    "parse_number",
]
