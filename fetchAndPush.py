#!/usr/bin/env python3
import argparse
import os
import sys
import traceback

from buyer_totals import aggregate_by_buyer
from config import load_settings
from date_ranges import VALID_KEYS, parse_range_key, resolve_range
from errors import LedgerJobError
from raw_ledger import make_range_label, push_raw_data


def dump_raw_csv(debug_dir, range_key, csv_text):
    os.makedirs(debug_dir, exist_ok=True)
    path = os.path.join(debug_dir, f"{range_key}.raw.csv")
    with open(path, "w", encoding="utf-8") as f:
        f.write(csv_text)
    print(f"→ [debug] Wrote raw CSV to {path}")
    return path


def run_ingest(range_key, source, store, raw_range, debug_dir=None, today=None, now=None):
    """
    One ingest run: resolve the dates, fetch the export, total it per buyer
    and append one labeled block to the ledger.
    """
    key = parse_range_key(range_key)
    span = resolve_range(key, today=today)
    print(f"Report dates: {span.start_text} - {span.end_text}")

    csv_text = source.fetch(span)
    if debug_dir:
        dump_raw_csv(debug_dir, key, csv_text)

    summary = aggregate_by_buyer(csv_text)
    if not summary:
        print("[WARN] Export has no data rows; appending an empty block.")

    label = make_range_label(key, now=now)
    return push_raw_data(store, summary, label, raw_range)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Download the buyer report for a date range and append per-buyer totals to RawData."
    )
    parser.add_argument("range_key", nargs="?", default="Today",
                        help=f"one of: {', '.join(VALID_KEYS)} (default: Today)")
    parser.add_argument("--debug-dir", default=None,
                        help="also write the raw export to DIR/<range>.raw.csv")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    print(f"🚀 Running for range: {args.range_key}")

    try:
        key = parse_range_key(args.range_key)
        # Imported late so a bad range key fails before Chrome or Google are touched
        settings = load_settings()
        from getBuyerReport import PortalReportSource
        from googleSheets import SheetStore

        settings.require_portal_login()
        store = SheetStore.from_settings(settings)
        run_ingest(
            key,
            PortalReportSource(settings),
            store,
            settings.raw_range,
            debug_dir=args.debug_dir or settings.debug_dir,
        )
    except LedgerJobError as e:
        print(f"[ERROR] {type(e).__name__}: {e}", file=sys.stderr)
        return 1
    except Exception:
        print(f"[ERROR] Unexpected failure:\n{traceback.format_exc()}", file=sys.stderr)
        return 1

    print("🎉 Done.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
