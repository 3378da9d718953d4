import io
import re
from typing import List, NamedTuple

import pandas as pd

# The portal export starts with a few lines of report metadata; the real
# header is the first line that starts with this token (quotes included).
HEADER_TOKEN = '"Request Date and Time"'
BUYER_COLUMN = "User Name"
QTY_COLUMN = "Order QTY"

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


class AggregateRow(NamedTuple):
    buyer: str
    total: int


def parse_quantity(value):
    """
    Best-effort integer parse: leading sign and digits only, 0 when nothing
    parses. '12' -> 12, '4.9' -> 4, '-3' -> -3, 'n/a' -> 0, None -> 0.
    """
    if value is None:
        return 0
    match = _LEADING_INT.match(str(value))
    if not match:
        return 0
    return int(match.group(1))


def strip_preamble(csv_text):
    """Drops everything above the header line. Returns '' when there is no header."""
    if csv_text.startswith("\ufeff"):
        csv_text = csv_text[1:]
    # Only real newlines; quoted fields may hold U+2028 and friends
    lines = csv_text.split("\n")
    for idx, line in enumerate(lines):
        if line.startswith(HEADER_TOKEN):
            return "\n".join(lines[idx:])
    return ""


def read_report(csv_text):
    """Parses the export into a DataFrame of raw strings (no NaN, no type guessing)."""
    data_csv = strip_preamble(csv_text)
    if not data_csv:
        print(f"[WARN] No line starting with {HEADER_TOKEN} found in the export.")
        return pd.DataFrame(columns=[BUYER_COLUMN, QTY_COLUMN])

    return pd.read_csv(
        io.StringIO(data_csv),
        dtype=str,
        keep_default_na=False,
        skip_blank_lines=True,
        on_bad_lines="skip",
        index_col=False,
    ).fillna("")


def aggregate_by_buyer(csv_text) -> List[AggregateRow]:
    """
    Sums Order QTY per User Name. Buyers come back in the order they first
    appear in the report. An export with a header and no data rows gives [].
    """
    df = read_report(csv_text)
    if df.empty:
        return []

    # Missing columns behave like empty cells: buyer '' and quantity 0
    df = df.reindex(columns=[BUYER_COLUMN, QTY_COLUMN], fill_value="")
    df["qty"] = df[QTY_COLUMN].map(parse_quantity)

    totals = df.groupby(BUYER_COLUMN, sort=False)["qty"].sum()
    return [AggregateRow(buyer, int(total)) for buyer, total in totals.items()]
