#!/usr/bin/env python3
import argparse
import sys
import traceback

from config import load_settings
from errors import LedgerJobError
from summary_builder import build_summary


def main(argv=None):
    argparse.ArgumentParser(
        description="Rebuild the Summary tab from every block in RawData."
    ).parse_args(argv)

    try:
        settings = load_settings()
        from googleSheets import SheetStore

        store = SheetStore.from_settings(settings)
        build_summary(store, settings.raw_range, settings.summary_range)
    except LedgerJobError as e:
        print(f"❌ Failed to build summary: {type(e).__name__}: {e}", file=sys.stderr)
        return 1
    except Exception:
        print(f"❌ Failed to build summary:\n{traceback.format_exc()}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
