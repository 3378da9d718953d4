import pytest


class MemoryStore:
    """In-memory stand-in for the spreadsheet: region name -> list of rows."""

    def __init__(self, regions=None):
        self.regions = {k: [list(r) for r in v] for k, v in (regions or {}).items()}
        self.calls = []

    def read(self, region):
        self.calls.append(("read", region))
        return [list(r) for r in self.regions.get(region, [])]

    def append(self, region, matrix):
        self.calls.append(("append", region))
        self.regions.setdefault(region, []).extend(list(r) for r in matrix)

    def overwrite(self, region, matrix):
        self.calls.append(("overwrite", region))
        self.regions[region] = [list(r) for r in matrix]


class CannedSource:
    def __init__(self, text):
        self.text = text
        self.spans = []

    def fetch(self, span):
        self.spans.append(span)
        return self.text


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def report_csv():
    return (
        "Distribute Portal\n"
        "Custom report generated 10/19/2026\n"
        "\n"
        '"Request Date and Time","User Name","Order QTY","Event"\n'
        '"2026/10/19 09:12","Alice","2","Gala"\n'
        '"2026/10/19 09:40","Bob","1","Gala"\n'
        '"2026/10/19 10:02","Alice","3","Matinee"\n'
    )
