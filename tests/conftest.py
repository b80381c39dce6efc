"""
Shared test fixtures
In-memory stand-in for the supabase-py client plus a wired TestClient
"""
import copy
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional
from unittest.mock import MagicMock

import pytest

from homefield.domain.models.tenant import Identity


class FakeAPIError(Exception):
    """Mimics postgrest.APIError, which carries the server text on .message"""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class FakeResponse:
    def __init__(self, data: List[Dict[str, Any]], count: Optional[int] = None):
        self.data = data
        self.count = count


class FakeQuery:
    """Chainable query builder covering the PostgREST calls the app makes."""

    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table = table
        self.op = "select"
        self.payload: Any = None
        self.count_mode: Optional[str] = None
        self.head = False
        self.filters: List[Callable[[Dict[str, Any]], bool]] = []
        self.filter_columns: List[str] = []
        self.equalities: Dict[str, Any] = {}
        self.orders: List[tuple] = []
        self.offset = 0
        self.max_rows: Optional[int] = None

    # -- operations ---------------------------------------------------------

    def select(self, columns: str = "*", count: Optional[str] = None, head: bool = False) -> "FakeQuery":
        self.op = "select"
        self.count_mode = count
        self.head = head
        return self

    def insert(self, payload: Any) -> "FakeQuery":
        self.op = "insert"
        self.payload = payload
        return self

    def update(self, payload: Dict[str, Any]) -> "FakeQuery":
        self.op = "update"
        self.payload = payload
        return self

    def delete(self) -> "FakeQuery":
        self.op = "delete"
        return self

    # -- filters ------------------------------------------------------------

    def _filter(self, column: str, predicate: Callable[[Dict[str, Any]], bool]) -> "FakeQuery":
        self.filter_columns.append(column)
        self.filters.append(predicate)
        return self

    def eq(self, column: str, value: Any) -> "FakeQuery":
        self.equalities[column] = value
        return self._filter(column, lambda row: row.get(column) == value)

    def neq(self, column: str, value: Any) -> "FakeQuery":
        return self._filter(column, lambda row: row.get(column) != value)

    def lt(self, column: str, value: Any) -> "FakeQuery":
        return self._filter(column, lambda row: row.get(column) is not None and row.get(column) < value)

    def lte(self, column: str, value: Any) -> "FakeQuery":
        return self._filter(column, lambda row: row.get(column) is not None and row.get(column) <= value)

    def gte(self, column: str, value: Any) -> "FakeQuery":
        return self._filter(column, lambda row: row.get(column) is not None and row.get(column) >= value)

    def in_(self, column: str, values: List[Any]) -> "FakeQuery":
        return self._filter(column, lambda row: row.get(column) in values)

    def is_(self, column: str, value: str) -> "FakeQuery":
        assert value == "null"
        return self._filter(column, lambda row: row.get(column) is None)

    def or_(self, expression: str) -> "FakeQuery":
        clauses = []
        for clause in expression.split(","):
            column, operator, pattern = clause.split(".", 2)
            assert operator == "ilike"
            clauses.append((column, pattern.strip("%").lower()))

        def matches(row: Dict[str, Any]) -> bool:
            return any(term in str(row.get(column) or "").lower() for column, term in clauses)

        self.filters.append(matches)
        return self

    # -- shaping ------------------------------------------------------------

    def order(self, column: str, desc: bool = False) -> "FakeQuery":
        self.orders.append((column, desc))
        return self

    def range(self, start: int, end: int) -> "FakeQuery":
        self.offset = start
        self.max_rows = end - start + 1
        return self

    def limit(self, size: int) -> "FakeQuery":
        self.max_rows = size
        return self

    # -- execution ----------------------------------------------------------

    def _matching(self) -> List[Dict[str, Any]]:
        return [row for row in self.db.tables.setdefault(self.table, []) if all(f(row) for f in self.filters)]

    def _check_columns(self) -> None:
        missing = self.db.missing_columns.get(self.table, set())
        referenced = set(self.filter_columns)
        if isinstance(self.payload, dict):
            referenced |= set(self.payload)
        for column in referenced & missing:
            raise FakeAPIError(f'column {self.table}.{column} does not exist')

    def execute(self) -> FakeResponse:
        self.db.executed.append(self)
        if self.table in self.db.failing_tables:
            raise FakeAPIError(f"connection to {self.table} refused")
        for table, column, value in self.db.failing_filters:
            if table == self.table and self.equalities.get(column) == value:
                raise FakeAPIError(f"statement timeout on {self.table}")
        self._check_columns()

        if self.op == "insert":
            return FakeResponse(self._insert())

        rows = self._matching()
        if self.op == "update":
            for row in rows:
                row.update(self.payload)
            return FakeResponse(copy.deepcopy(rows))
        if self.op == "delete":
            table = self.db.tables[self.table]
            self.db.tables[self.table] = [row for row in table if row not in rows]
            return FakeResponse(copy.deepcopy(rows))

        for column, desc in reversed(self.orders):
            rows.sort(key=lambda row: (row.get(column) is None, row.get(column)), reverse=desc)
        count = len(rows) if self.count_mode else None
        if self.head:
            return FakeResponse([], count)
        rows = rows[self.offset:]
        if self.max_rows is not None:
            rows = rows[:self.max_rows]
        return FakeResponse(copy.deepcopy(rows), count)

    def _insert(self) -> List[Dict[str, Any]]:
        records = self.payload if isinstance(self.payload, list) else [self.payload]
        table = self.db.tables.setdefault(self.table, [])
        unique_column = self.db.unique_columns.get(self.table)
        inserted = []
        for record in records:
            row = dict(record)
            if unique_column and any(r.get(unique_column) == row.get(unique_column) for r in table):
                raise FakeAPIError(f'duplicate key value violates unique constraint "{self.table}_{unique_column}_key"')
            row.setdefault("id", str(uuid.uuid4()))
            row.setdefault("created_at", datetime.now(timezone.utc).isoformat())
            table.append(row)
            inserted.append(copy.deepcopy(row))
        return inserted


class FakeSupabase:
    """
    In-memory supabase-py Client.

    - tables: name -> list of row dicts
    - failing_tables: every query on these raises
    - failing_filters: (table, column, value) triples; queries with that
      equality filter raise
    - missing_columns: table -> columns the schema lacks
    - unique_columns: table -> column with a unique constraint
    - executed: every query run, for asserting on filters
    """

    def __init__(self):
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self.failing_tables: set = set()
        self.failing_filters: List[tuple] = []
        self.missing_columns: Dict[str, set] = {}
        self.unique_columns: Dict[str, str] = {}
        self.executed: List[FakeQuery] = []
        self.auth = MagicMock()

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def seed(self, table: str, rows: List[Dict[str, Any]]) -> None:
        self.tables.setdefault(table, []).extend(copy.deepcopy(rows))

    def rows(self, table: str) -> List[Dict[str, Any]]:
        return self.tables.get(table, [])


class StubSessionResolver:
    """Maps bearer tokens straight to identities."""

    def __init__(self, tokens: Dict[str, Identity]):
        self.tokens = tokens

    def resolve(self, access_token: Optional[str]) -> Optional[Identity]:
        return self.tokens.get(access_token) if access_token else None


TENANT_ROWS = [
    {
        "id": "tenant-admin",
        "legal_business_name": "HomeField Hub",
        "auth_user_id": "admin-user",
        "role": "admin",
        "deleted_at": None,
        "created_at": "2025-01-01T00:00:00+00:00",
    },
    {
        "id": "tenant-a",
        "legal_business_name": "Acme Roofing",
        "first_name": "Ann",
        "email_for_notifications": "ann@acme.test",
        "auth_user_id": "owner-a",
        "role": "client",
        "notify_email": False,
        "notify_sms": False,
        "deleted_at": None,
        "created_at": "2025-02-01T00:00:00+00:00",
    },
    {
        "id": "tenant-b",
        "legal_business_name": "Bolt Gutters",
        "auth_user_id": "owner-b",
        "role": "client",
        "deleted_at": None,
        "created_at": "2025-03-01T00:00:00+00:00",
    },
    {
        "id": "tenant-gone",
        "legal_business_name": "Gone Siding",
        "auth_user_id": "owner-gone",
        "role": "client",
        "deleted_at": "2025-04-01T00:00:00+00:00",
        "created_at": "2025-04-01T00:00:00+00:00",
    },
]

TEAM_ROWS = [
    {"id": "member-row-a", "client_id": "tenant-a", "auth_user_id": "member-a", "email": "crew@acme.test",
     "role": "viewer", "created_at": "2025-02-02T00:00:00+00:00"},
    {"id": "member-row-b", "client_id": "tenant-b", "auth_user_id": "member-b", "email": "crew@bolt.test",
     "role": "manager", "created_at": "2025-03-02T00:00:00+00:00"},
]

LEAD_ROWS = [
    {"id": "lead-a1", "client_id": "tenant-a", "name": "Homeowner One", "status": "new",
     "created_at": "2025-05-01T10:00:00+00:00"},
    {"id": "lead-a2", "client_id": "tenant-a", "name": "Homeowner Two", "status": "contacted",
     "created_at": "2025-05-02T10:00:00+00:00"},
    {"id": "lead-b1", "client_id": "tenant-b", "name": "Other Tenant Lead", "status": "new",
     "created_at": "2025-05-03T10:00:00+00:00"},
]

APPOINTMENT_ROWS = [
    {"id": "appt-a1", "client_id": "tenant-a", "status": "showed"},
    {"id": "appt-a2", "client_id": "tenant-a", "status": "no_show"},
    {"id": "appt-b1", "client_id": "tenant-b", "status": "showed"},
]

PAYMENT_ROWS = [
    {"id": "pay-a1", "client_id": "tenant-a", "amount_cents": 500, "status": "succeeded"},
    {"id": "pay-a2", "client_id": "tenant-a", "amount_cents": 200, "status": "failed"},
    {"id": "pay-a3", "client_id": "tenant-a", "amount_cents": 300, "status": "succeeded"},
    {"id": "pay-b1", "client_id": "tenant-b", "amount_cents": 9900, "status": "succeeded"},
]


@pytest.fixture
def fake_supabase() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture
def portal_db(fake_supabase: FakeSupabase) -> FakeSupabase:
    """Fake store seeded with an admin, two clients and a soft-deleted client."""
    fake_supabase.seed("agency_clients", TENANT_ROWS)
    fake_supabase.seed("client_team_members", TEAM_ROWS)
    fake_supabase.seed("leads", LEAD_ROWS)
    fake_supabase.seed("appointments", APPOINTMENT_ROWS)
    fake_supabase.seed("payments", PAYMENT_ROWS)
    fake_supabase.seed("sms_conversations", [
        {"id": "msg-a1", "client_id": "tenant-a", "lead_id": "lead-a1", "role": "assistant", "content": "Hi"},
        {"id": "msg-b1", "client_id": "tenant-b", "lead_id": "lead-b1", "role": "assistant", "content": "Hey"},
    ])
    return fake_supabase


@pytest.fixture
def session_tokens() -> Dict[str, Identity]:
    return {
        "admin-token": Identity(id="admin-user", email="ops@homefield.test"),
        "owner-a-token": Identity(id="owner-a", email="ann@acme.test"),
        "member-a-token": Identity(id="member-a", email="crew@acme.test"),
        "stranger-token": Identity(id="nobody", email="nobody@example.test"),
        "gone-token": Identity(id="owner-gone", email="owner@gone.test"),
    }


@pytest.fixture
def auth() -> Callable[[str], Dict[str, str]]:
    """Build a bearer Authorization header for a token."""
    return lambda token: {"Authorization": f"Bearer {token}"}


@pytest.fixture
def api_client(portal_db: FakeSupabase, session_tokens: Dict[str, Identity]):
    """TestClient with the store, session resolver and webhook overridden."""
    from fastapi.testclient import TestClient

    from homefield.api.dependencies import (
        get_optional_supabase,
        get_session_resolver,
        get_store,
        get_webhook_client,
    )
    from homefield.main import app

    app.dependency_overrides[get_store] = lambda: portal_db
    app.dependency_overrides[get_optional_supabase] = lambda: portal_db
    app.dependency_overrides[get_session_resolver] = lambda: StubSessionResolver(session_tokens)
    app.dependency_overrides[get_webhook_client] = lambda: None

    yield TestClient(app)

    app.dependency_overrides.clear()
