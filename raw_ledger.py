from datetime import datetime

LEDGER_HEADER = ["Buyer", "Tickets Purchased"]


def make_range_label(range_key, now=None):
    """'This month' -> 'This month (10/19/2026)'."""
    if now is None:
        now = datetime.now()
    return f"{range_key} ({now.month}/{now.day}/{now.year})"


def build_ledger_block(rows, range_label):
    """
    Label row, fixed header, one [buyer, total] row per aggregate and a blank
    separator row at the end.
    """
    block = [[range_label], list(LEDGER_HEADER)]
    block += [[r.buyer, r.total] for r in rows]
    block.append([])
    return block


def push_raw_data(store, rows, range_label, region):
    """
    Appends one block to the ledger. Running twice for the same label writes
    two blocks; the ledger is a history log and is never merged.
    """
    block = build_ledger_block(rows, range_label)
    store.append(region, block)
    print(f"→ Raw data appended: '{range_label}' with {len(rows)} buyer row(s).")
    return block
