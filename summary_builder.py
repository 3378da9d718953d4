from typing import Dict, List, NamedTuple, Tuple, Union

import pandas as pd

from buyer_totals import parse_quantity
from errors import MalformedLedgerRow
from raw_ledger import LEDGER_HEADER

HEADER_TOKEN = LEDGER_HEADER[0]


##############################################################################
# 1) ROW SHAPES
##############################################################################
class LabelRow(NamedTuple):
    label: str


class DataRow(NamedTuple):
    buyer: str
    total: int


class SeparatorRow(NamedTuple):
    reason: str


LedgerRow = Union[LabelRow, DataRow, SeparatorRow]


class LedgerBucket(NamedTuple):
    label: str
    totals: Tuple[Tuple[str, int], ...]

    def as_dict(self) -> Dict[str, int]:
        return dict(self.totals)

    def has_nonzero(self):
        return any(total != 0 for total in self.as_dict().values())


class PivotTable(NamedTuple):
    labels: List[str]
    buyers: List[str]
    frame: pd.DataFrame

    def to_matrix(self):
        header = ["Buyer"] + list(self.labels)
        body = [[buyer] + values for buyer, values in zip(self.buyers, self.frame.values.tolist())]
        return [header] + body


def _trim(row):
    cells = ["" if c is None else str(c) for c in row]
    while cells and cells[-1] == "":
        cells.pop()
    return cells


def classify_row(row) -> LedgerRow:
    """
    Sorts one ledger row into label / data / separator by its cell count.
    Sheets drops trailing empty cells, so trailing blanks are ignored here too.
    """
    cells = _trim(row)
    if not cells:
        return SeparatorRow("blank")
    if len(cells) == 1:
        return LabelRow(cells[0])
    if len(cells) == 2:
        if cells[0] == HEADER_TOKEN:
            return SeparatorRow("header")
        return DataRow(cells[0], parse_quantity(cells[1]))
    return SeparatorRow(f"{len(cells)} cells")


##############################################################################
# 2) FOLD OVER THE LEDGER
##############################################################################
def fold_ledger(rows) -> Tuple[LedgerBucket, ...]:
    """
    One pass over the ledger rows in storage order. A label seen again (a
    re-run of the same range on the same day) replaces the earlier block
    but keeps its original position. A buyer repeated inside one block
    keeps the later total.
    """
    blocks: List[LedgerBucket] = []
    positions: Dict[str, int] = {}
    current_label = None
    current: Dict[str, int] = {}

    def close_block():
        if current_label is None:
            return
        bucket = LedgerBucket(current_label, tuple(current.items()))
        if current_label in positions:
            blocks[positions[current_label]] = bucket
        else:
            positions[current_label] = len(blocks)
            blocks.append(bucket)

    for row_number, row in enumerate(rows, start=1):
        shape = classify_row(row)
        try:
            if isinstance(shape, LabelRow):
                close_block()
                current_label, current = shape.label, {}
            elif isinstance(shape, DataRow):
                if current_label is None:
                    raise MalformedLedgerRow(row_number, row, "data row before any label")
                current[shape.buyer] = shape.total
            elif shape.reason not in ("blank", "header"):
                raise MalformedLedgerRow(row_number, row, shape.reason)
        except MalformedLedgerRow as e:
            print(f"[WARN] Skipping ledger row: {e}")
    close_block()

    return tuple(blocks)


##############################################################################
# 3) PIVOT
##############################################################################
def build_pivot(rows) -> PivotTable:
    """
    Blocks where every total is zero are dropped. Columns follow ledger order,
    buyers follow the order they are first seen across the kept blocks.
    """
    kept = [b for b in fold_ledger(rows) if b.has_nonzero()]

    buyers: List[str] = []
    seen = set()
    for block in kept:
        for buyer, _ in block.totals:
            if buyer not in seen:
                seen.add(buyer)
                buyers.append(buyer)

    labels = [b.label for b in kept]
    frame = pd.DataFrame(
        {b.label: pd.Series(b.as_dict(), dtype="int64") for b in kept},
        index=pd.Index(buyers, dtype=object),
        columns=labels,
    )
    frame = frame.reindex(buyers).fillna(0).astype("int64")

    return PivotTable(labels, buyers, frame)


def build_summary_matrix(rows):
    return build_pivot(rows).to_matrix()


def build_summary(store, raw_range, summary_range):
    """
    Rebuilds the whole summary from the whole ledger and overwrites the
    summary region. Nothing is written if reading the ledger fails.
    """
    rows = store.read(raw_range)
    table = build_summary_matrix(rows)
    store.overwrite(summary_range, table)
    print(f"✅ Summary tab updated with {len(table[0]) - 1} columns.")
    return table
