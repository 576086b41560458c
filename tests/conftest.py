"""Shared pytest fixtures and in-memory fakes for the matching engine tests."""
import fnmatch
import uuid
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from matrimony.models.connection import ConnectionState
from matrimony.services.profile_store import opposite_gender


def birth_date_for_age(age, today=None):
    """A birth date that yields exactly ``age`` under the 365.25-day rule."""
    today = today or datetime.now(timezone.utc).date()
    return today - timedelta(days=int(age * 365.25) + 30)


def make_user(gender="female", age=28, **overrides):
    data = {
        "id": uuid.uuid4(),
        "first_name": "Test",
        "middle_name": None,
        "last_name": "User",
        "gender": gender,
        "role": "user",
        "date_of_birth": birth_date_for_age(age) if age is not None else None,
        "email": f"{uuid.uuid4().hex[:8]}@example.com",
        "phone_number": "9876543210",
        "custom_id": None,
        "is_active": True,
        "is_deleted": False,
        "blocked_users": [],
        "created_at": datetime.now(timezone.utc),
    }
    data.update(overrides)
    return SimpleNamespace(**data)


class FakeRedis:
    """Dict-backed stand-in for a ``redis.asyncio`` client (decode_responses=True)."""

    def __init__(self):
        self.data = {}
        self.ttls = {}

    async def get(self, key):
        return self.data.get(key)

    async def setex(self, key, ttl, value):
        self.data[key] = value
        self.ttls[key] = ttl
        return True

    async def delete(self, *keys):
        removed = 0
        for key in keys:
            if key in self.data:
                del self.data[key]
                self.ttls.pop(key, None)
                removed += 1
        return removed

    async def exists(self, key):
        return 1 if key in self.data else 0

    async def ttl(self, key):
        if key not in self.data:
            return -2
        return self.ttls.get(key, -1)

    async def scan_iter(self, match="*", count=None):
        for key in list(self.data):
            if fnmatch.fnmatchcase(key, match):
                yield key

    async def ping(self):
        return True

    async def aclose(self):
        return None


class FakeProfileStore:
    """In-memory ProfileStore with the same method surface.

    ``calls`` counts store round trips per method so tests can assert that
    attribute collections are batch-loaded once per discovery.
    """

    def __init__(self):
        self.users = {}
        self.preferences = {}
        self.personal = {}
        self.education = {}
        self.profession = {}
        self.health = {}
        self.family = {}
        self.profiles = {}
        self.connections = []
        self.view_counts = {}
        self.view_records = {}
        self.notifications = []
        self.calls = {}
        self.fail_on = set()

    def _hit(self, name):
        self.calls[name] = self.calls.get(name, 0) + 1
        if name in self.fail_on:
            raise OSError(f"store unavailable: {name}")

    # ── fixtures helpers ──
    def add_user(self, user, preferences=None, personal=None, education=None,
                 profession=None, health=None, family=None, profile=None):
        self.users[user.id] = user
        for bucket, record in (
            (self.preferences, preferences),
            (self.personal, personal),
            (self.education, education),
            (self.profession, profession),
            (self.health, health),
            (self.family, family),
            (self.profiles, profile),
        ):
            if record is not None:
                if isinstance(record, dict):
                    record = SimpleNamespace(user_id=user.id, **record)
                bucket[user.id] = record
        return user

    def connect(self, sender_id, receiver_id, status="pending"):
        self.connections.append((sender_id, receiver_id, status))

    # ── ProfileStore surface ──
    async def get_user(self, user_id):
        self._hit("get_user")
        return self.users.get(user_id)

    async def get_preferences(self, user_id):
        self._hit("get_preferences")
        return self.preferences.get(user_id)

    async def get_profile(self, user_id):
        self._hit("get_profile")
        return self.profiles.get(user_id)

    async def get_personal(self, user_id):
        self._hit("get_personal")
        return self.personal.get(user_id)

    async def get_education(self, user_id):
        self._hit("get_education")
        return self.education.get(user_id)

    async def get_profession(self, user_id):
        self._hit("get_profession")
        return self.profession.get(user_id)

    async def get_health(self, user_id):
        self._hit("get_health")
        return self.health.get(user_id)

    async def get_family(self, user_id):
        self._hit("get_family")
        return self.family.get(user_id)

    async def find_candidates(self, seeker):
        self._hit("find_candidates")
        wanted = opposite_gender(seeker.gender)
        blocked = set(seeker.blocked_users or [])
        return [
            u for u in self.users.values()
            if u.gender == wanted
            and u.is_active
            and not u.is_deleted
            and u.id != seeker.id
            and u.id not in blocked
            and seeker.id not in (u.blocked_users or [])
        ]

    async def load_many(self, model, user_ids):
        name = f"load_many:{model.__tablename__}"
        self._hit(name)
        bucket = {
            "user_personal": self.personal,
            "user_education": self.education,
            "user_profession": self.profession,
            "user_health": self.health,
            "profiles": self.profiles,
        }[model.__tablename__]
        return {uid: bucket[uid] for uid in user_ids if uid in bucket}

    async def connected_user_ids(self, seeker_id, candidate_ids):
        self._hit("connected_user_ids")
        wanted = set(candidate_ids)
        out = set()
        for sender, receiver, _status in self.connections:
            if sender == seeker_id and receiver in wanted:
                out.add(receiver)
            elif receiver == seeker_id and sender in wanted:
                out.add(sender)
        return out

    async def connection_state(self, user_a, user_b):
        self._hit("connection_state")
        for sender, receiver, status in reversed(self.connections):
            if {sender, receiver} == {user_a, user_b}:
                return ConnectionState.parse(status)
        return ConnectionState.NONE

    async def increment_view_counter(self, candidate_id):
        self._hit("increment_view_counter")
        self.view_counts[candidate_id] = self.view_counts.get(candidate_id, 0) + 1

    async def upsert_view_record(self, viewer_id, candidate_id, week_start_date, week_number):
        self._hit("upsert_view_record")
        self.view_records[(viewer_id, candidate_id, week_start_date)] = week_number

    async def create_notification(self, user_id, type, title, message, meta=None):
        self._hit("create_notification")
        self.notifications.append(
            SimpleNamespace(user_id=user_id, type=type, title=title, message=message, meta=meta)
        )

    async def weekly_view_counts(self, candidate_id):
        self._hit("weekly_view_counts")
        counts = {}
        for (viewer, cand, week_start_date), week_number in self.view_records.items():
            if cand == candidate_id:
                key = (week_start_date, week_number)
                counts[key] = counts.get(key, 0) + 1
        return sorted(
            ((start, number, n) for (start, number), n in counts.items()),
            key=lambda row: row[0],
            reverse=True,
        )


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def fake_store():
    return FakeProfileStore()


@pytest.fixture
def seeker(fake_store):
    """Male seeker aged 30 with specific preferences."""
    user = make_user(gender="male", age=30, first_name="Arjun", last_name="Mehta")
    return fake_store.add_user(
        user,
        preferences={
            "age_from": 24,
            "age_to": 30,
            "community": ["Hindu"],
            "marital_status": ["Never Married"],
            "education_level": ["No Preference"],
            "living_in_country": ["India"],
            "living_in_state": ["No Preference"],
            "profession": [],
            "diet": ["vegetarian"],
            "alcohol": "occasionally",
        },
        personal={"religion": "Hindu", "residing_country": "India", "state": "Gujarat"},
        health={"has_hiv": None, "alcohol": "no", "diet": "vegetarian"},
        profile={"favorite_profiles": [], "photos": None, "government_id_image": None},
    )


def add_candidate(store, gender="female", age=27, religion="Hindu", country="India",
                  state="Gujarat", marital="Never Married", diet="Jain",
                  education="B.Tech", occupation="Engineer", has_hiv=None,
                  alcohol="no", **user_overrides):
    user = make_user(gender=gender, age=age, **user_overrides)
    return store.add_user(
        user,
        personal={
            "religion": religion,
            "sub_caste": None,
            "residing_country": country,
            "state": state,
            "city": "Ahmedabad",
            "marital_status": marital,
        },
        education={"highest_education": education},
        profession={"occupation": occupation, "annual_income": "12 LPA"},
        health={"has_hiv": has_hiv, "alcohol": alcohol, "diet": diet},
        profile={
            "favorite_profiles": [],
            "photos": {"closer_photo": {"url": f"https://cdn.example.com/{user.id}.jpg"}},
            "government_id_image": None,
            "profile_viewed": 0,
        },
    )


@pytest.fixture
def make_candidate(fake_store):
    """Factory adding a fully-populated candidate to ``fake_store``."""

    def _make(**kwargs):
        return add_candidate(fake_store, **kwargs)

    return _make
