from datetime import date, datetime

import pytest

import buildSummary
import fetchAndPush
import getBuyerReport
import googleSheets
from errors import InvalidRangeKey, SourceUnavailable, StoreWriteFailure
from fetchAndPush import run_ingest

from conftest import CannedSource, MemoryStore

RAW = "RawData!A:C"


def test_run_ingest_appends_one_block(store, report_csv):
    source = CannedSource(report_csv)
    block = run_ingest("This month", source, store, RAW,
                       today=date(2026, 10, 19), now=datetime(2026, 10, 19, 8, 30))

    assert source.spans[0].start == date(2026, 10, 1)
    assert source.spans[0].end == date(2026, 10, 19)
    assert block == store.regions[RAW] == [
        ["This month (10/19/2026)"],
        ["Buyer", "Tickets Purchased"],
        ["Alice", 5],
        ["Bob", 1],
        [],
    ]


def test_empty_export_still_appends(store):
    run_ingest("Today", CannedSource('"Request Date and Time","User Name","Order QTY"\n'),
               store, RAW, now=datetime(2026, 1, 2))
    assert store.regions[RAW] == [["Today (1/2/2026)"], ["Buyer", "Tickets Purchased"], []]


def test_invalid_key_touches_nothing(store):
    source = CannedSource("unused")
    with pytest.raises(InvalidRangeKey):
        run_ingest("Next week", source, store, RAW)
    assert source.spans == []
    assert store.calls == []


def test_failed_fetch_does_not_append(store):
    class DownSource:
        def fetch(self, span):
            raise SourceUnavailable("export timed out")

    with pytest.raises(SourceUnavailable):
        run_ingest("Today", DownSource(), store, RAW)
    assert store.calls == []


def test_debug_dump(tmp_path, store, report_csv):
    run_ingest("Yesterday", CannedSource(report_csv), store, RAW, debug_dir=str(tmp_path / "debug"))
    assert (tmp_path / "debug" / "Yesterday.raw.csv").read_text(encoding="utf-8") == report_csv


def test_ingest_then_rebuild(store, report_csv):
    run_ingest("Today", CannedSource(report_csv), store, RAW, now=datetime(2026, 10, 19))
    run_ingest("Yesterday", CannedSource('"Request Date and Time","User Name","Order QTY"\n"d","Bob","0"\n'),
               store, RAW, now=datetime(2026, 10, 19))

    table = buildSummary.build_summary(store, RAW, "Summary!A1")
    assert table == [["Buyer", "Today (10/19/2026)"], ["Alice", 5], ["Bob", 1]]


# --------------------------------------------------------------------------
# CLI
# --------------------------------------------------------------------------
class _Settings:
    raw_range = RAW
    summary_range = "Summary!A1"
    debug_dir = None

    def require_portal_login(self):
        return "user", "pw"


@pytest.fixture
def wired(monkeypatch, report_csv):
    memory = MemoryStore()
    monkeypatch.setattr(fetchAndPush, "load_settings", lambda: _Settings())
    monkeypatch.setattr(buildSummary, "load_settings", lambda: _Settings())
    monkeypatch.setattr(googleSheets.SheetStore, "from_settings", classmethod(lambda cls, s: memory))
    monkeypatch.setattr(getBuyerReport, "PortalReportSource", lambda settings: CannedSource(report_csv))
    return memory


def test_cli_defaults_to_today(wired, capsys):
    assert fetchAndPush.main([]) == 0
    assert wired.regions[RAW][0][0].startswith("Today (")
    assert "Running for range: Today" in capsys.readouterr().out


def test_cli_invalid_key_exits_nonzero(wired, capsys):
    assert fetchAndPush.main(["Next week"]) == 1
    assert wired.calls == []
    assert "InvalidRangeKey" in capsys.readouterr().err


def test_cli_store_failure_exits_nonzero(wired, monkeypatch):
    def broken_append(region, matrix):
        raise StoreWriteFailure("quota exceeded")

    monkeypatch.setattr(wired, "append", broken_append)
    assert fetchAndPush.main(["Last month"]) == 1


def test_summary_cli(wired):
    wired.regions[RAW] = [["A"], ["Alice", "2"], []]
    assert buildSummary.main([]) == 0
    assert wired.regions["Summary!A1"] == [["Buyer", "A"], ["Alice", 2]]


def test_summary_cli_read_failure(wired, monkeypatch, capsys):
    from errors import StoreReadFailure

    def broken_read(region):
        raise StoreReadFailure("no access")

    monkeypatch.setattr(wired, "read", broken_read)
    assert buildSummary.main([]) == 1
    assert "Summary!A1" not in wired.regions
    assert "StoreReadFailure" in capsys.readouterr().err
