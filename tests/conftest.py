from types import SimpleNamespace

import pytest
from postgrest.exceptions import APIError

from services import search_service


def _split_or(expr):
    """Split a PostgREST or-filter on commas outside double quotes."""
    parts, buf, quoted, escaped = [], "", False, False
    for ch in expr:
        if escaped:
            buf += ch
            escaped = False
        elif ch == "\\":
            buf += ch
            escaped = True
        elif ch == '"':
            buf += ch
            quoted = not quoted
        elif ch == "," and not quoted:
            parts.append(buf)
            buf = ""
        else:
            buf += ch
    parts.append(buf)
    return parts


def _unquote(value):
    if value.startswith('"') and value.endswith('"'):
        value = value[1:-1]
        out, escaped = "", False
        for ch in value:
            if escaped:
                out += ch
                escaped = False
            elif ch == "\\":
                escaped = True
            else:
                out += ch
        return out
    return value


def _ilike(cell, pattern):
    if cell is None:
        return False
    needle = pattern.strip("%").lower()
    return needle in str(cell).lower()


class FakeQuery:
    def __init__(self, client, table):
        self.client = client
        self.table = table
        self.columns = "*"
        self.predicates = []
        self.orders = []
        self.window = None
        self.max_count = None

    def select(self, columns):
        self.columns = columns
        return self

    def or_(self, expr):
        clauses = []
        for clause in _split_or(expr):
            column, op, value = clause.split(".", 2)
            assert op == "ilike"
            clauses.append((column, _unquote(value)))
        self.client.or_filters.append(expr)
        self.predicates.append(lambda row: any(_ilike(row.get(c), p) for c, p in clauses))
        return self

    def in_(self, column, values):
        allowed = set(values)
        self.predicates.append(lambda row: row.get(column) in allowed)
        return self

    def order(self, column, desc=False):
        self.orders.append((column, desc))
        return self

    def range(self, start, end):
        self.window = (start, end)
        self.client.ranges.append((self.table, start, end))
        self.client.paged.append((self.table, self.columns, list(self.orders)))
        return self

    def limit(self, count):
        self.max_count = count
        return self

    def execute(self):
        self.client.calls.append((self.table, self.columns))
        for table, columns in self.client.failures:
            if table == self.table and columns in (None, self.columns):
                raise APIError({"message": "boom", "code": "500", "hint": None, "details": None})

        rows = [r for r in self.client.tables.get(self.table, []) if all(p(r) for p in self.predicates)]
        if self.client.unstable_order and self.window is not None and not self.orders:
            # Unordered offset queries may come back in a different order each time
            self.client.unordered_requests += 1
            if self.client.unordered_requests % 2 == 0:
                rows.reverse()
        for column, desc in reversed(self.orders):
            rows.sort(key=lambda r: r.get(column), reverse=desc)
        if self.window is not None:
            rows = rows[self.window[0]:self.window[1] + 1]
        if self.max_count is not None:
            rows = rows[:self.max_count]
        rows = rows[:self.client.max_rows]

        if self.columns != "*":
            names = [c.strip() for c in self.columns.split(",")]
            rows = [{n: r.get(n) for n in names} for r in rows]
        else:
            rows = [dict(r) for r in rows]
        return SimpleNamespace(data=rows)


class FakeSupabaseClient:
    """In-memory stand-in for the subset of supabase.Client used by the services."""

    def __init__(self, tables, max_rows=1000, unstable_order=False):
        self.tables = tables
        self.max_rows = max_rows
        self.unstable_order = unstable_order
        self.unordered_requests = 0
        self.paged = []
        self.failures = []
        self.calls = []
        self.ranges = []
        self.or_filters = []

    def fail_on(self, table, columns=None):
        self.failures.append((table, columns))

    def table(self, name):
        return FakeQuery(self, name)

    def queried(self, table, columns=None):
        return [c for c in self.calls if c[0] == table and columns in (None, c[1])]


def make_building(building_id, title, **fields):
    row = {
        "building_id": building_id,
        "uid": f"uid-{building_id}",
        "title": title,
        "titleEn": None,
        "buildingTypes": None,
        "buildingTypesEn": None,
        "location": None,
        "locationEn_from_datasheetChunkEn": None,
        "prefectures": None,
        "prefecturesEn": None,
        "areas": None,
        "areasEn": None,
        "completionYears": None,
        "lat": None,
        "lng": None,
        "thumbnailUrl": None,
        "youtubeUrl": None,
    }
    row.update(fields)
    return row


@pytest.fixture()
def catalog():
    return {
        "buildings_table_2": [
            make_building(1, "国立代々木競技場", titleEn="Yoyogi National Gymnasium",
                          buildingTypes="体育館", buildingTypesEn="Gymnasium",
                          location="東京都渋谷区", prefectures="東京都", prefecturesEn="Tokyo",
                          completionYears=1964, lat=35.667, lng=139.700),
            make_building(2, "東京カテドラル聖マリア大聖堂", titleEn="St. Mary's Cathedral, Tokyo",
                          buildingTypes="教会", buildingTypesEn="Church",
                          prefectures="東京都", prefecturesEn="Tokyo", completionYears=1964),
            make_building(3, "光の教会", titleEn="Church of the Light",
                          buildingTypes="教会", buildingTypesEn="Church",
                          prefectures="大阪府", prefecturesEn="Osaka", areas="関西", areasEn="Kansai",
                          completionYears=1989),
            make_building(4, "金沢21世紀美術館", titleEn="21st Century Museum of Contemporary Art",
                          buildingTypes="美術館", buildingTypesEn="Museum",
                          prefectures="石川県", prefecturesEn="Ishikawa", completionYears=2004),
        ],
        "individual_architects": [
            {"individual_architect_id": 1, "name_ja": "丹下健三", "name_en": "Kenzo Tange"},
            {"individual_architect_id": 2, "name_ja": "安藤忠雄", "name_en": "Tadao Ando"},
            {"individual_architect_id": 3, "name_ja": "妹島和世", "name_en": "Kazuyo Sejima"},
            {"individual_architect_id": 4, "name_ja": "西沢立衛", "name_en": "Ryue Nishizawa"},
            {"individual_architect_id": 5, "name_ja": "坪井善勝", "name_en": None},
        ],
        "architect_compositions": [
            {"architect_id": 10, "individual_architect_id": 1, "order_index": 1},
            {"architect_id": 11, "individual_architect_id": 2, "order_index": 1},
            {"architect_id": 12, "individual_architect_id": 4, "order_index": 2},
            {"architect_id": 12, "individual_architect_id": 3, "order_index": 1},
            {"architect_id": 13, "individual_architect_id": 5, "order_index": 1},
        ],
        "building_architects": [
            {"building_id": 1, "architect_id": 13, "architect_order": 2},
            {"building_id": 1, "architect_id": 10, "architect_order": 1},
            {"building_id": 2, "architect_id": 10, "architect_order": 1},
            {"building_id": 3, "architect_id": 11, "architect_order": 1},
            {"building_id": 4, "architect_id": 12, "architect_order": 1},
        ],
    }


@pytest.fixture()
def fake_client(catalog, monkeypatch):
    client = FakeSupabaseClient(catalog)
    monkeypatch.setattr(search_service, "get_supabase_client", lambda: client)
    return client


@pytest.fixture()
def make_client():
    return FakeSupabaseClient
