"""Test fixtures: an in-memory stand-in for the Supabase query builder."""

import copy
import os
from datetime import date
from types import SimpleNamespace

# Set ENVIRONMENT before importing any modules that read tomos.config
os.environ.setdefault("ENVIRONMENT", "test")

import pytest
from postgrest.exceptions import APIError

from tomos.catalog.store import CatalogStore


PLACEHOLDER = "Actualizando…"
TODAY = date(2024, 1, 15)


def _column_value(row, column):
    # Embedded relations are compared through their id, like the FK column.
    value = row.get(column)
    if isinstance(value, list):
        value = value[0] if value else None
    if isinstance(value, dict):
        value = value.get("id")
    return value


def _sort_rows(rows, orders):
    for column, desc in reversed(orders):
        rows.sort(
            key=lambda r: (_column_value(r, column) is None, _column_value(r, column)),
            reverse=desc,
        )


class FakeQuery:
    """Records a query and evaluates it against the backend's tables."""

    def __init__(self, backend, table):
        self.backend = backend
        self.table = table
        self.columns = None
        self.filters = []
        self.orders = []
        self.limits = {}
        self.single_row = False

    def select(self, *columns):
        self.columns = ",".join(columns)
        return self

    def eq(self, column, value):
        self.filters.append(("eq", column, value))
        return self

    def gte(self, column, value):
        self.filters.append(("gte", column, value))
        return self

    def lte(self, column, value):
        self.filters.append(("lte", column, value))
        return self

    def in_(self, column, values):
        self.filters.append(("in", column, list(values)))
        return self

    def order(self, column, *, desc=False, nullsfirst=None, foreign_table=None):
        self.orders.append((column, desc, foreign_table))
        return self

    def limit(self, size, *, foreign_table=None):
        self.limits[foreign_table] = size
        return self

    def single(self):
        self.single_row = True
        return self

    def _matches(self, row):
        for op, column, expected in self.filters:
            value = _column_value(row, column)
            # PostgREST receives filter values as text
            if op == "eq" and str(value) != str(expected):
                return False
            if op == "gte" and (value is None or value < expected):
                return False
            if op == "lte" and (value is None or value > expected):
                return False
            if op == "in" and str(value) not in {str(v) for v in expected}:
                return False
        return True

    async def execute(self):
        self.backend.executed.append(self)
        if self.backend.error is not None:
            raise self.backend.error

        rows = [copy.deepcopy(r) for r in self.backend.tables.get(self.table, [])]
        rows = [r for r in rows if self._matches(r)]
        _sort_rows(rows, [(c, d) for c, d, ft in self.orders if ft is None])

        for row in rows:
            for relation in {ft for _, _, ft in self.orders if ft is not None}:
                if isinstance(row.get(relation), list):
                    _sort_rows(
                        row[relation],
                        [(c, d) for c, d, ft in self.orders if ft == relation],
                    )
            for relation, size in self.limits.items():
                if relation is not None and isinstance(row.get(relation), list):
                    row[relation] = row[relation][:size]

        if None in self.limits:
            rows = rows[: self.limits[None]]

        if self.single_row:
            if len(rows) != 1:
                raise APIError(
                    {
                        "message": "JSON object requested, multiple (or no) rows returned",
                        "code": "PGRST116",
                        "hint": None,
                        "details": f"The result contains {len(rows)} rows",
                    }
                )
            return SimpleNamespace(data=rows[0])
        return SimpleNamespace(data=rows)


class FakeBackend:
    """Mimics ``supabase.AsyncClient.table`` over in-memory rows."""

    def __init__(self, tables):
        self.tables = tables
        self.executed = []
        self.error = None

    def table(self, name):
        return FakeQuery(self, name)

    @property
    def last(self):
        return self.executed[-1]


def _publisher(pid):
    names = {1: "Ivrea", 2: "Panini"}
    return {"id": pid, "name": names[pid]}


def sample_tables():
    publication = [
        {"id": 1, "serie": 10, "publisher": _publisher(1), "name": "Z", "edition": 2,
         "date": "2024-01-01", "price": 10.0, "image_url": ["z2.png"], "wide": True},
        {"id": 2, "serie": 11, "publisher": _publisher(1), "name": "A", "edition": 1,
         "date": "2024-01-01", "price": 9.5, "image_url": ["a1.png", "a1-back.png"], "wide": True},
        {"id": 3, "serie": 10, "publisher": _publisher(2), "name": "Z", "edition": 1,
         "date": "2024-01-01", "price": 10.0, "image_url": None, "wide": False},
        {"id": 4, "serie": 12, "publisher": _publisher(2), "name": "M", "edition": 3,
         "date": "2024-01-20", "price": 12.0, "image_url": [], "wide": False},
        {"id": 5, "serie": 10, "publisher": _publisher(1), "name": "Z", "edition": 3,
         "date": "2024-02-03", "price": 10.0, "image_url": ["z3.png"], "wide": False},
        {"id": 6, "serie": 11, "publisher": _publisher(1), "name": "A", "edition": 0,
         "date": "2023-12-31", "price": 9.5, "image_url": None, "wide": False},
        {"id": 7, "serie": 11, "publisher": _publisher(1), "name": "A", "edition": 2,
         "date": "2024-01-01", "price": 9.5, "image_url": ["a2.png"], "wide": True},
    ]
    series = [
        {
            "id": 10, "name": "Zeta", "anilist": 100, "status": "ongoing",
            "type": [{"id": 1, "name": "Manga", "color": "#ff0000"}],
            "publisher": {"id": 1, "name": "Ivrea"},
            "publication": [
                {"id": 52, "name": "Zeta 2", "edition": 1, "price": 10.0,
                 "image_url": ["second.png"], "date": "2024-02-01"},
                {"id": 51, "name": "Zeta 1", "edition": 1, "price": 10.0,
                 "image_url": ["cover.png"], "date": "2024-01-01"},
                {"id": 53, "name": "Zeta 1 (deluxe)", "edition": 2, "price": 20.0,
                 "image_url": ["deluxe.png"], "date": "2024-01-01"},
            ],
            "licensed": None,
        },
        {
            "id": 11, "name": "Alpha", "anilist": None, "status": "ongoing",
            "type": {"id": 1, "name": "Manga", "color": "#ff0000"},
            "publisher": {"id": 2, "name": "Panini"},
            "publication": [],
            "licensed": {"source": "twitter", "image_url": "lic.png",
                         "timestamp": "2024-01-10T00:00:00"},
        },
        {
            "id": 12, "name": "Mu", "anilist": 120, "status": "finished",
            "type": {"id": 2, "name": "Novela", "color": "#0000ff"},
            "publisher": [{"id": 1, "name": "Ivrea"}],
            "publication": None,
            "licensed": [{"source": "web", "image_url": "lic-list.png",
                          "timestamp": "2024-01-12T00:00:00"}],
        },
        {
            "id": 13, "name": "Beta", "anilist": None, "status": "ongoing",
            "type": None,
            "publisher": {"id": 2, "name": "Panini"},
            "publication": [],
            "licensed": None,
        },
    ]
    licensed = [
        {"serie": 11, "publisher": 2, "source": "twitter", "image_url": "lic.png",
         "timestamp": "2024-01-10T00:00:00"},
        {"serie": 12, "publisher": 3, "source": "web", "image_url": "lic-list.png",
         "timestamp": "2024-01-12T00:00:00"},
        {"serie": 13, "publisher": 1, "source": "web", "image_url": None,
         "timestamp": "2024-01-10T00:00:00"},
        {"serie": 14, "publisher": 99, "source": "web", "image_url": None,
         "timestamp": "2023-12-01T00:00:00"},
    ]
    return {
        "publication": publication,
        "series": series,
        "licensed": licensed,
        "publisher": [
            {"id": 1, "name": "Ivrea"},
            {"id": 2, "name": "Panini"},
            {"id": 3, "name": None},
        ],
        "type": [
            {"id": 1, "name": "Manga", "color": "#ff0000"},
            {"id": 2, "name": "Novela", "color": "#0000ff"},
        ],
    }


@pytest.fixture
def backend():
    return FakeBackend(sample_tables())


@pytest.fixture
def store(backend):
    return CatalogStore(backend, clock=lambda: TODAY, publisher_placeholder=PLACEHOLDER)


@pytest.fixture
def backend_error():
    return APIError(
        {
            "message": "permission denied for table publication",
            "code": "42501",
            "hint": None,
            "details": None,
        }
    )
