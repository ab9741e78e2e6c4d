"""Tests for Supabase adapter implementations."""

from dataclasses import dataclass, field

import pytest

from fitmacro.adapters.supabase_analysis_repository import SupabaseAnalysisRepository
from fitmacro.adapters.supabase_auth_verifier import SupabaseAuthVerifier
from fitmacro.adapters.supabase_health_record_repository import (
    SupabaseHealthRecordRepository,
)
from fitmacro.domain.errors import AuthError


@dataclass
class FakeResponse:
    data: list[dict[str, object]] | None


@dataclass
class FakeTable:
    name: str
    response_queue: dict[str, list[list[dict[str, object]]]] = field(
        default_factory=lambda: {"select": [], "upsert": []}
    )
    last_payload: object | None = None
    last_filters: list[tuple[str, object]] = field(default_factory=list)
    last_options: dict[str, object] = field(default_factory=dict)

    def queue(self, action: str, data: list[dict[str, object]]) -> None:
        self.response_queue[action].append(data)

    def select(self, *_args) -> "FakeTable":
        self._action = "select"
        return self

    def upsert(self, payload, **options) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "upsert"
        self.last_payload = payload
        self.last_options = options
        return self

    def eq(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((column, value))
        return self

    def limit(self, _count: int) -> "FakeTable":
        return self

    def execute(self) -> FakeResponse:
        action = getattr(self, "_action", "select")
        queue = self.response_queue.get(action, [])
        data = queue.pop(0) if queue else []
        return FakeResponse(data=data)


@dataclass
class FakeUser:
    id: str


@dataclass
class FakeUserResponse:
    user: FakeUser | None


@dataclass
class FakeAuth:
    users: dict[str, str] = field(default_factory=dict)

    def get_user(self, token: str) -> FakeUserResponse:
        if token == "expired":
            raise RuntimeError("JWT expired")
        uid = self.users.get(token)
        return FakeUserResponse(user=FakeUser(id=uid) if uid else None)


@dataclass
class FakeSupabaseClient:
    tables: dict[str, FakeTable] = field(default_factory=dict)
    auth: FakeAuth = field(default_factory=FakeAuth)

    def table(self, name: str) -> FakeTable:
        if name not in self.tables:
            self.tables[name] = FakeTable(name=name)
        return self.tables[name]


def test_health_record_repository_reads_data_column() -> None:
    client = FakeSupabaseClient()
    table = client.table("health_records")
    table.queue("select", [{"data": {"calories": 1800}}])

    repository = SupabaseHealthRecordRepository(client)

    assert repository.get_health_record("user-1", "2026-10-18") == {"calories": 1800}
    assert table.last_filters == [("user_id", "user-1"), ("date_key", "2026-10-18")]
    assert repository.get_health_record("user-1", "2026-10-19") is None


def test_analysis_repository_upserts_one_column() -> None:
    client = FakeSupabaseClient()
    table = client.table("ai_analysis")

    repository = SupabaseAnalysisRepository(client)
    repository.merge_analysis(
        "user-1", "2026-10-18", "body_analyze", {"source": "placeholder"}
    )

    payload = table.last_payload
    assert isinstance(payload, dict)
    assert payload["user_id"] == "user-1"
    assert payload["date_key"] == "2026-10-18"
    assert payload["body_analyze"] == {"source": "placeholder"}
    assert "face_analyze" not in payload
    assert "analyzed_at" in payload
    assert table.last_options == {"on_conflict": "user_id,date_key"}


def test_auth_verifier_resolves_user() -> None:
    client = FakeSupabaseClient(auth=FakeAuth(users={"token-1": "uid-1"}))

    context = SupabaseAuthVerifier(client).verify("token-1")

    assert context.uid == "uid-1"


def test_auth_verifier_rejects_bad_tokens() -> None:
    verifier = SupabaseAuthVerifier(FakeSupabaseClient())

    with pytest.raises(AuthError):
        verifier.verify("unknown")
    with pytest.raises(AuthError):
        verifier.verify("expired")
