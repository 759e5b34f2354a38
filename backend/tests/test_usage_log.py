from __future__ import annotations

from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.db.models.flow_generation_log import FlowGenerationLog
from app.services.usage_log import UsageLogStore, UsageRecord


@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    FlowGenerationLog.__table__.create(bind=engine)
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


def _record(**overrides) -> UsageRecord:
    data = {
        "user_id": "user-123",
        "fingerprint": "a" * 64,
        "model_id": "gpt-4o-mini",
        "tokens_in": 800,
        "tokens_out": 1200,
        "cost_cents": Decimal("0.0840"),
        "duration_ms": 2300,
        "status": "success",
        "user_prompt": "Gym plan",
    }
    data.update(overrides)
    return UsageRecord(**data)


def test_append_persists_a_row(session_factory) -> None:
    with session_factory() as db:
        assert UsageLogStore(db).append(_record()) is True
        row = db.query(FlowGenerationLog).one()

    assert row.user_id == "user-123"
    assert row.input_hash == "a" * 64
    assert row.flow_id is None
    assert row.model_used == "gpt-4o-mini"
    assert (row.tokens_in, row.tokens_out) == (800, 1200)
    assert row.duration_ms == 2300
    assert row.llm_status == "success"
    assert row.user_prompt_raw == "Gym plan"


def test_append_is_one_row_per_call(session_factory) -> None:
    with session_factory() as db:
        store = UsageLogStore(db)
        store.append(_record())
        store.append(_record(status="cache_hit", tokens_in=0, tokens_out=0, cost_cents=Decimal("0")))

        statuses = [row.llm_status for row in db.query(FlowGenerationLog).order_by(FlowGenerationLog.created_at)]

    assert sorted(statuses) == ["cache_hit", "success"]


def test_negative_counters_are_clamped(session_factory) -> None:
    with session_factory() as db:
        UsageLogStore(db).append(_record(tokens_in=-1, duration_ms=-10))
        row = db.query(FlowGenerationLog).one()

    assert row.tokens_in == 0
    assert row.duration_ms == 0


def test_write_failure_is_swallowed() -> None:
    class _BrokenSession:
        rolled_back = False

        def add(self, obj):
            pass

        def commit(self):
            raise OperationalError("INSERT", {}, Exception("database is down"))

        def rollback(self):
            self.rolled_back = True

    db = _BrokenSession()

    assert UsageLogStore(db).append(_record()) is False
    assert db.rolled_back is True
