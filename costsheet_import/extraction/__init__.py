"""Cost sheet extraction: RawGrid -> CostRecord."""

from .assembler import EmptyGridError, detect_category, extract_cost_record
from .cells import extract_numeric, format_computed_value, is_error_marker, normalize_to_decimal_string

__all__ = [
    "EmptyGridError",
    "detect_category",
    "extract_cost_record",
    "extract_numeric",
    "format_computed_value",
    "is_error_marker",
    "normalize_to_decimal_string",
]
