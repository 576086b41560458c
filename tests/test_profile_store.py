"""Tests for ProfileStore query construction and row mapping.

No database is needed: a recording session captures the statements so the
SQL can be compiled against the PostgreSQL dialect and inspected.
"""
import uuid
from datetime import date
from types import SimpleNamespace

import pytest
from sqlalchemy.dialects import postgresql

from matrimony.models.connection import ConnectionState
from matrimony.models.attributes import UserPersonal
from matrimony.services.profile_store import ProfileStore, as_id_set, opposite_gender


class _Result:
    def __init__(self, rows=None, scalar=None):
        self._rows = rows or []
        self._scalar = scalar

    def scalars(self):
        return SimpleNamespace(all=lambda: list(self._rows))

    def all(self):
        return list(self._rows)

    def scalar_one_or_none(self):
        return self._scalar


class _RecordingSession:
    def __init__(self, result):
        self.result = result
        self.statements = []
        self.added = []
        self.commits = 0

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    async def execute(self, stmt):
        self.statements.append(stmt)
        return self.result

    def add(self, obj):
        self.added.append(obj)

    async def commit(self):
        self.commits += 1


def _store(result=None):
    session = _RecordingSession(result or _Result())
    return ProfileStore(session_factory=lambda: session), session


def _sql(stmt):
    return str(stmt.compile(dialect=postgresql.dialect()))


class TestOppositeGender:
    def test_male_sees_female(self):
        assert opposite_gender("male") == "female"
        assert opposite_gender("Male") == "female"

    def test_everyone_else_sees_male(self):
        assert opposite_gender("female") == "male"
        assert opposite_gender("other") == "male"
        assert opposite_gender(None) == "male"


class TestFindCandidates:
    @pytest.mark.asyncio
    async def test_filter_covers_both_block_directions(self):
        store, session = _store()
        blocked = uuid.uuid4()
        seeker = SimpleNamespace(id=uuid.uuid4(), gender="male", blocked_users=[blocked])

        assert await store.find_candidates(seeker) == []

        sql = _sql(session.statements[0])
        assert "users.gender" in sql
        assert "users.is_active IS true" in sql
        assert "users.is_deleted IS false" in sql
        assert "users.id !=" in sql
        assert "users.blocked_users @>" in sql
        assert "NOT IN" in sql
        assert "ORDER BY users.created_at DESC" in sql

    @pytest.mark.asyncio
    async def test_no_block_list_skips_not_in(self):
        store, session = _store()
        seeker = SimpleNamespace(id=uuid.uuid4(), gender="female", blocked_users=[])

        await store.find_candidates(seeker)

        assert "NOT IN" not in _sql(session.statements[0])


class TestBatchLoads:
    @pytest.mark.asyncio
    async def test_load_many_maps_by_user_id(self):
        a, b = uuid.uuid4(), uuid.uuid4()
        rows = [SimpleNamespace(user_id=a, city="Pune"), SimpleNamespace(user_id=b, city="Surat")]
        store, session = _store(_Result(rows=rows))

        loaded = await store.load_many(UserPersonal, [a, b])

        assert loaded[a].city == "Pune"
        assert loaded[b].city == "Surat"
        assert len(session.statements) == 1

    @pytest.mark.asyncio
    async def test_load_many_empty_ids_skips_query(self):
        store, session = _store()
        assert await store.load_many(UserPersonal, []) == {}
        assert session.statements == []

    @pytest.mark.asyncio
    async def test_connected_user_ids_returns_counterparty(self):
        seeker, sent_to, received_from = uuid.uuid4(), uuid.uuid4(), uuid.uuid4()
        rows = [(seeker, sent_to), (received_from, seeker)]
        store, _ = _store(_Result(rows=rows))

        connected = await store.connected_user_ids(seeker, [sent_to, received_from])

        assert connected == {sent_to, received_from}


class TestConnectionState:
    @pytest.mark.asyncio
    async def test_no_request_is_none(self):
        store, session = _store(_Result(scalar=None))
        state = await store.connection_state(uuid.uuid4(), uuid.uuid4())
        assert state is ConnectionState.NONE
        assert "LIMIT" in _sql(session.statements[0])

    @pytest.mark.asyncio
    async def test_latest_status_is_parsed(self):
        store, _ = _store(_Result(scalar="accepted"))
        assert await store.connection_state(uuid.uuid4(), uuid.uuid4()) is ConnectionState.ACCEPTED


class TestViewWrites:
    @pytest.mark.asyncio
    async def test_upsert_targets_weekly_constraint(self):
        store, session = _store()
        await store.upsert_view_record(uuid.uuid4(), uuid.uuid4(), date(2026, 1, 5), 2)

        sql = _sql(session.statements[0])
        assert "ON CONFLICT ON CONSTRAINT uq_profile_view_week DO UPDATE" in sql
        assert session.commits == 1

    @pytest.mark.asyncio
    async def test_increment_commits(self):
        store, session = _store()
        await store.increment_view_counter(uuid.uuid4())
        assert "profile_viewed" in _sql(session.statements[0])
        assert session.commits == 1

    @pytest.mark.asyncio
    async def test_create_notification_adds_row(self):
        store, session = _store()
        user_id = uuid.uuid4()
        await store.create_notification(user_id, "profile_view", "Profile viewed", "Someone viewed")
        assert session.added[0].user_id == user_id
        assert session.commits == 1


def test_as_id_set_normalises_to_strings():
    a = uuid.uuid4()
    assert as_id_set([a, str(a)]) == {str(a)}
    assert as_id_set(None) == set()
