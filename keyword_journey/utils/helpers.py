"""General-purpose helper utilities for Keyword Journey."""

import re
from typing import Any, Optional


def parse_stat_number(value: Any, below_threshold: Optional[float] = None) -> float:
    """Parse a Naver statistic string into a float.

    Naver reports very small volumes as ``"<10"``. When ``below_threshold`` is
    given, such values become that number; otherwise the ``<`` is dropped and
    the bound itself is used. Commas are stripped; anything unparseable is 0.

    Examples:
        >>> parse_stat_number("1,234")
        1234.0
        >>> parse_stat_number("<10", below_threshold=5)
        5.0
        >>> parse_stat_number("<10")
        10.0
        >>> parse_stat_number("N/A")
        0.0
    """
    if value is None:
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).strip()
    if text.startswith("<") and below_threshold is not None:
        return float(below_threshold)
    text = text.replace("<", "").replace(",", "")
    try:
        return float(text)
    except ValueError:
        return 0.0


def format_number(n: int | float) -> str:
    """Format a number with human-readable suffixes.

    Args:
        n: Numeric value.

    Returns:
        Formatted string (e.g. 1500 -> '1.5K', 2500000 -> '2.5M').

    Examples:
        >>> format_number(1500)
        '1.5K'
        >>> format_number(2500000)
        '2.5M'
        >>> format_number(999)
        '999'
    """
    abs_n = abs(n)
    sign = "-" if n < 0 else ""
    if abs_n >= 1_000_000:
        return f"{sign}{abs_n / 1_000_000:.1f}M"
    if abs_n >= 1_000:
        return f"{sign}{abs_n / 1_000:.1f}K"
    if isinstance(n, float) and not n.is_integer():
        return f"{sign}{abs_n:.1f}"
    return f"{sign}{int(abs_n)}"


def format_stat(value: Any, integer: bool = False) -> str:
    """Format a raw statistic for a table cell, keeping ``"<10"`` as-is.

    Examples:
        >>> format_stat("12345")
        '12,345'
        >>> format_stat("<10")
        '<10'
        >>> format_stat("123.4", integer=True)
        '123'
    """
    if value == "<10":
        return "<10"
    try:
        num = float(str(value).replace(",", ""))
    except (TypeError, ValueError):
        return str(value)
    if integer:
        return f"{int(round(num)):,}"
    if num.is_integer():
        return f"{int(num):,}"
    return f"{num:,.1f}".rstrip("0").rstrip(".")


def safe_filename(text: str, default: str = "report") -> str:
    """Make a filesystem-safe name while keeping Hangul and other letters."""
    cleaned = re.sub(r"[^\w\-]+", "_", text.strip(), flags=re.UNICODE).strip("_")
    return cleaned or default
