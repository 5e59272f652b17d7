from decimal import Decimal
from typing import List, Literal, Optional, Union

from utils.config import BACKEND_URL, CURRENCY_SYMBOL


def generate_markdown_table(
    headers: Optional[List[str]],
    rows: List[List[str]],
    aligns: Optional[List[Literal["l", "c", "r"]]] = None,
) -> str:
    """
    Generate a Markdown table.

    Args:
        headers: List of column headers, or None to use first row as headers.
        rows: List of rows, each a list of strings.
        aligns: List of alignments ('l', 'c', 'r') for each column.
                Defaults to all center ('c').

    Returns:
        str: Markdown formatted table.
    """
    if not rows:
        return ""

    # If no headers, take the first row as header and remove it from rows
    if not headers:
        headers, rows = rows[0], rows[1:]

    headers = list(map(str, headers))
    rows = [list(map(str, row)) for row in rows]

    num_cols = len(headers)
    if aligns is None:
        aligns = ["c"] * num_cols
    elif len(aligns) != num_cols:
        raise ValueError("Length of aligns must match number of headers.")

    align_map = {
        "l": ":---",
        "c": ":---:",
        "r": "---:",
    }

    header_line = "| " + " | ".join(headers) + " |"
    align_line = "| " + " | ".join(align_map[a] for a in aligns) + " |"
    row_lines = ["| " + " | ".join(row) + " |" for row in rows]

    return "\n".join([header_line, align_line, *row_lines])


def format_price(amount: Union[Decimal, float, int, None]) -> str:
    """Format a money amount as US currency, e.g. 1234.5 -> $1,234.50"""
    if amount is None:
        return "-"
    value = Decimal(str(amount)).quantize(Decimal("0.01"))
    sign = "-" if value < 0 else ""
    return f"{sign}{CURRENCY_SYMBOL}{abs(value):,.2f}"


def humanize_enum(value: Optional[str]) -> str:
    """SEVENTY_FIVE_PERCENT -> Seventy Five Percent"""
    if not value:
        return "-"
    return value.replace("_", " ").title()


def resolve_image_url(path: Optional[str]) -> Optional[str]:
    """
    Images uploaded through the backend are stored as server-relative paths
    (/product-images/...); anything else is already an absolute url.
    """
    if not path:
        return None
    if path.startswith("/product-images/"):
        return BACKEND_URL.rstrip("/") + path
    return path
