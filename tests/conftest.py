import copy
import os
import uuid
from datetime import datetime
from types import SimpleNamespace

import pytest

os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "test-service-key")

from fastapi.testclient import TestClient  # noqa: E402

from campus.core.session_cache import create_session  # noqa: E402
from campus.db.supabase import get_supabase  # noqa: E402
from campus.main import app  # noqa: E402


class ForeignKeyViolation(Exception):
    pass


# Column defaults applied on insert, mirroring the table DDL
DEFAULTS = {
    "weekly_schedules": {"is_active": True},
    "attendance": {"status": "absent"},
    "classrooms": {"students_count": 0, "status": "active", "is_public": False},
    "classroom_enrollments": {"status": "active"},
}

# (table, column) -> referenced table (by id)
FOREIGN_KEYS = {
    ("attendance", "student_id"): "profiles",
}


class FakeQuery:
    """Subset of the postgrest query builder backed by lists of dicts."""

    def __init__(self, db, table):
        self._db = db
        self._table = table
        self._op = "select"
        self._columns = "*"
        self._payload = None
        self._on_conflict = None
        self._filters = []
        self._order = []
        self._limit = None
        self._count = None

    # operations
    def select(self, columns="*", count=None):
        self._op, self._columns, self._count = "select", columns, count
        return self

    def insert(self, payload):
        self._op, self._payload = "insert", payload
        return self

    def upsert(self, payload, on_conflict=""):
        self._op, self._payload, self._on_conflict = "upsert", payload, on_conflict
        return self

    def update(self, payload):
        self._op, self._payload = "update", payload
        return self

    def delete(self):
        self._op = "delete"
        return self

    # filters
    def eq(self, column, value):
        self._filters.append(lambda row: row.get(column) == value)
        return self

    def in_(self, column, values):
        values = list(values)
        self._filters.append(lambda row: row.get(column) in values)
        return self

    def gte(self, column, value):
        self._filters.append(lambda row: row.get(column) is not None and row.get(column) >= value)
        return self

    def lte(self, column, value):
        self._filters.append(lambda row: row.get(column) is not None and row.get(column) <= value)
        return self

    def order(self, column, desc=False):
        self._order.append((column, desc))
        return self

    def limit(self, size):
        self._limit = size
        return self

    # execution
    def _rows(self):
        return self._db.tables.setdefault(self._table, [])

    def _matches(self, row):
        return all(f(row) for f in self._filters)

    def _project(self, row):
        if self._columns.strip() == "*":
            return copy.deepcopy(row)
        names = [c.strip() for c in self._columns.split(",")]
        return {name: copy.deepcopy(row.get(name)) for name in names}

    def _check_foreign_keys(self, row):
        for (table, column), target in FOREIGN_KEYS.items():
            if table != self._table or column not in row:
                continue
            ids = {r["id"] for r in self._db.tables.get(target, [])}
            if row[column] not in ids:
                raise ForeignKeyViolation(
                    f'insert or update on table "{table}" violates foreign key constraint on {column}'
                )

    def _new_row(self, payload):
        row = dict(DEFAULTS.get(self._table, {}))
        row["id"] = str(uuid.uuid4())
        row["created_at"] = datetime.utcnow().isoformat()
        row.update(copy.deepcopy(payload))
        return row

    def execute(self):
        self._db.calls.append((self._table, self._op))
        failure = self._db.failures.get((self._table, self._op))
        if failure:
            raise failure

        rows = self._rows()

        if self._op == "select":
            found = [r for r in rows if self._matches(r)]
            for column, desc in reversed(self._order):
                found.sort(key=lambda r: (r.get(column) is None, r.get(column)), reverse=desc)
            count = len(found) if self._count else None
            if self._limit is not None:
                found = found[: self._limit]
            return SimpleNamespace(data=[self._project(r) for r in found], count=count)

        if self._op == "insert":
            payloads = self._payload if isinstance(self._payload, list) else [self._payload]
            created = []
            for payload in payloads:
                self._check_foreign_keys(payload)
                row = self._new_row(payload)
                rows.append(row)
                created.append(copy.deepcopy(row))
            return SimpleNamespace(data=created, count=None)

        if self._op == "upsert":
            keys = [k.strip() for k in self._on_conflict.split(",") if k.strip()] or ["id"]
            self._check_foreign_keys(self._payload)
            for row in rows:
                if all(row.get(k) == self._payload.get(k) for k in keys):
                    row.update(copy.deepcopy(self._payload))
                    return SimpleNamespace(data=[copy.deepcopy(row)], count=None)
            row = self._new_row(self._payload)
            rows.append(row)
            return SimpleNamespace(data=[copy.deepcopy(row)], count=None)

        if self._op == "update":
            changed = []
            for row in rows:
                if self._matches(row):
                    row.update(copy.deepcopy(self._payload))
                    changed.append(copy.deepcopy(row))
            return SimpleNamespace(data=changed, count=None)

        if self._op == "delete":
            removed = [r for r in rows if self._matches(r)]
            self._db.tables[self._table] = [r for r in rows if not self._matches(r)]
            return SimpleNamespace(data=removed, count=None)

        raise AssertionError(f"unsupported operation {self._op}")


class FakeAuth:
    def __init__(self):
        self.accounts = {}

    def sign_in_with_password(self, credentials):
        account = self.accounts.get(credentials["email"])
        if not account or account["password"] != credentials["password"]:
            raise Exception("Invalid login credentials")
        return SimpleNamespace(
            user=SimpleNamespace(id=account["id"]),
            session=SimpleNamespace(access_token="supabase-access-token"),
        )


class FakeSupabase:
    def __init__(self):
        self.tables = {}
        self.calls = []
        # (table, op) -> exception raised by execute()
        self.failures = {}
        self.auth = FakeAuth()

    def table(self, name):
        return FakeQuery(self, name)

    def rows(self, name):
        return self.tables.get(name, [])

    def seed(self, name, **row):
        row.setdefault("id", str(uuid.uuid4()))
        for key, value in DEFAULTS.get(name, {}).items():
            row.setdefault(key, value)
        self.tables.setdefault(name, []).append(row)
        return row


@pytest.fixture
def db():
    return FakeSupabase()


@pytest.fixture
def client(db):
    app.dependency_overrides[get_supabase] = lambda: db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def auth_headers(user_id):
    return {"Authorization": f"Bearer {create_session(user_id)}"}


@pytest.fixture
def teacher(db):
    profile = db.seed("profiles", id="T1", email="ada@campus.edu", full_name="Ada Lovelace", role="teacher")
    return {"profile": profile, "headers": auth_headers("T1")}


@pytest.fixture
def other_teacher(db):
    profile = db.seed("profiles", id="T2", email="alan@campus.edu", full_name="Alan Turing", role="teacher")
    return {"profile": profile, "headers": auth_headers("T2")}


@pytest.fixture
def classroom(db, teacher):
    return db.seed(
        "classrooms",
        id="C1",
        classroom_code="CS101",
        invite_code="ABC123",
        title="Intro to Computing",
        subject="Computer Science",
        description="First year computing",
        teacher_id="T1",
        teacher_name="Ada Lovelace",
        max_students=3,
        students_count=0,
        schedule=[{"day": "Monday", "startTime": "09:00", "endTime": "10:00"}],
        created_at="2024-01-01T00:00:00",
    )


def add_student(db, student_id, name, classroom_id=None):
    profile = db.seed(
        "profiles", id=student_id, email=f"{student_id.lower()}@campus.edu",
        full_name=name, role="student",
    )
    if classroom_id:
        db.seed(
            "classroom_enrollments",
            classroom_id=classroom_id,
            student_id=student_id,
            student_name=name,
            student_email=profile["email"],
            enrolled_at="2024-01-02T00:00:00",
        )
    return profile


@pytest.fixture
def students(db, classroom):
    names = ["Grace Hopper", "Edsger Dijkstra", "Barbara Liskov"]
    profiles = [add_student(db, f"S{i + 1}", name, classroom["id"]) for i, name in enumerate(names)]
    classroom["students_count"] = len(profiles)
    return profiles
