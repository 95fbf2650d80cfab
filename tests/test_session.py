"""Tests for holder session context and the audit logger."""

import asyncio
import json
import logging
from datetime import datetime, timedelta, timezone

import pytest

from creator_credentials.audit.logger import AuditEvent, AuditLogger
from creator_credentials.auth.session import InMemorySessionStore, SessionContext
from creator_credentials.logging_config import JsonFormatter

from tests.conftest import HOLDER


class TestInMemorySessionStore:

    @pytest.mark.asyncio
    async def test_login_creates_context(self):
        store = InMemorySessionStore()

        session = await store.login(HOLDER, 60)

        assert session.holder_id == HOLDER
        assert len(session.session_id) >= 43
        assert 0 < session.ttl_seconds <= 60
        assert await store.get(session.session_id) == session

    @pytest.mark.asyncio
    async def test_session_ids_are_unique(self):
        store = InMemorySessionStore()
        ids = {(await store.login(HOLDER, 60)).session_id for _ in range(20)}
        assert len(ids) == 20

    @pytest.mark.asyncio
    async def test_logout_destroys_context(self):
        store = InMemorySessionStore()
        session = await store.login(HOLDER, 60)

        assert await store.logout(session.session_id) is True
        assert await store.get(session.session_id) is None
        assert await store.logout(session.session_id) is False

    @pytest.mark.asyncio
    async def test_expired_session_not_returned(self):
        store = InMemorySessionStore()
        session = await store.login(HOLDER, 1)
        await asyncio.sleep(1.1)

        assert await store.get(session.session_id) is None
        assert store.session_count == 0

    @pytest.mark.asyncio
    async def test_cleanup_expired(self):
        store = InMemorySessionStore()
        past = datetime.now(timezone.utc) - timedelta(seconds=10)
        store._sessions["old"] = SessionContext("old", HOLDER, past, past)
        await store.login(HOLDER, 60)

        assert await store.cleanup_expired() == 1
        assert store.session_count == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("holder,ttl", [("", 60), (HOLDER, 0)])
    async def test_login_validates_arguments(self, holder, ttl):
        with pytest.raises(ValueError):
            await InMemorySessionStore().login(holder, ttl)


class TestAuditLogger:

    def test_records_events_newest_first(self):
        audit = AuditLogger()
        audit.record("credential.issue", holder_id=HOLDER, resource="creator-1")
        audit.record("profile.save", holder_id=HOLDER, status="rejected")

        events = audit.get_recent_events()

        assert [e["action"] for e in events] == ["profile.save", "credential.issue"]
        assert events[1]["resource"] == "creator-1"

    def test_filters(self):
        audit = AuditLogger()
        audit.record("credential.issue", status="rejected")
        audit.record("credential.issue")
        audit.record("session.login")

        assert len(audit.get_recent_events(action_filter="credential.")) == 2
        assert len(audit.get_recent_events(status_filter="rejected")) == 1

    def test_disabled_logger_records_nothing(self):
        audit = AuditLogger(enabled=False)
        audit.log(AuditEvent(action="session.login"))
        assert audit.get_recent_events() == []

    def test_anonymous_default(self):
        audit = AuditLogger()
        audit.record("asset.upload")
        assert audit.get_recent_events()[0]["holder_id"] == "anonymous"

    def test_log_line_carries_action(self, caplog):
        audit = AuditLogger()

        with caplog.at_level(logging.INFO, logger="audit"):
            audit.record("credential.issue", holder_id=HOLDER)

        line = json.loads(JsonFormatter().format(caplog.records[-1]))
        assert line["action"] == "credential.issue"
        assert line["type"] == "audit"
        assert line["holder_id"] == HOLDER
        assert "route" not in line
