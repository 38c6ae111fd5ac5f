"""Tests for the access validator"""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from tokengate.core.access import (
    AccessValidator,
    DenialReason,
    InMemoryTokenStore,
    RequestMetadata,
)
from tokengate.core.access.validator import host_allowed, page_allowed
from tokengate.core.models import utc_now

from .conftest import build_record

META = RequestMetadata(ip="203.0.113.7", user_agent="pytest-agent", host="anyhost.test")


class SteppingClock:
    """Clock advancing one second per reading"""

    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        value = self.current
        self.current += timedelta(seconds=1)
        return value


class TestValidationOrder:
    """First failing check decides the denial reason"""

    async def test_unknown_token_is_not_found(self, validator):
        result = await validator.validate("does-not-exist", "report", META)
        assert result.valid is False
        assert result.reason == DenialReason.TOKEN_NOT_FOUND
        assert result.token is None

    async def test_inactive_wins_over_expired_and_page(self, memory_store, validator):
        record = await memory_store.create(build_record(
            is_active=False,
            expires_at=utc_now() - timedelta(days=1),
            allowed_pages=["other"],
        ))

        result = await validator.validate(record.token, "report", META)

        assert result.reason == DenialReason.TOKEN_INACTIVE

    async def test_expired_wins_over_domain_and_page(self, memory_store, validator):
        record = await memory_store.create(build_record(
            expires_at=utc_now() - timedelta(seconds=1),
            allowed_domains=["example.com"],
            allowed_pages=["other"],
        ))

        result = await validator.validate(record.token, "report", META)

        assert result.reason == DenialReason.TOKEN_EXPIRED

    async def test_domain_checked_before_page(self, memory_store, validator):
        record = await memory_store.create(build_record(
            allowed_domains=["example.com"],
            allowed_pages=["other"],
        ))

        result = await validator.validate(
            record.token, "report", RequestMetadata(ip="1.2.3.4", host="evil.test")
        )

        assert result.reason == DenialReason.DOMAIN_NOT_ALLOWED

    async def test_page_not_allowed(self, memory_store, validator):
        record = await memory_store.create(build_record(allowed_pages=["report"]))

        result = await validator.validate(record.token, "secret", META)

        assert result.reason == DenialReason.PAGE_NOT_ALLOWED

    async def test_expiry_boundary_is_exclusive(self, memory_store):
        expires_at = datetime(2030, 1, 1, tzinfo=timezone.utc)
        record = await memory_store.create(build_record(expires_at=expires_at))

        at_expiry = AccessValidator(memory_store, clock=lambda: expires_at)
        after_expiry = AccessValidator(
            memory_store, clock=lambda: expires_at + timedelta(microseconds=1)
        )

        assert (await at_expiry.validate(record.token, "report")).valid is True
        assert (await after_expiry.validate(record.token, "report")).reason == DenialReason.TOKEN_EXPIRED

    async def test_expired_token_scenario_leaves_log_untouched(self, memory_store, validator):
        record = await memory_store.create(build_record(
            expires_at=utc_now() - timedelta(days=1),
            allowed_pages=["reportA"],
        ))

        result = await validator.validate(record.token, "reportA", META)

        assert result.valid is False
        assert result.reason == DenialReason.TOKEN_EXPIRED
        stored = await memory_store.get(record.id)
        assert stored.access_log == []
        assert stored.access_count == 0
        assert stored.last_accessed_at is None


class TestDomainRestriction:
    """Host checks against allowed domains"""

    async def test_empty_domains_allow_any_host(self, memory_store, validator):
        record = await memory_store.create(build_record(allowed_domains=[]))

        for host in ["anyhost.test", "localhost:8000", "example.org"]:
            result = await validator.validate(
                record.token, "report", RequestMetadata(ip="1.1.1.1", host=host)
            )
            assert result.valid is True

    async def test_subdomain_passes_lookalike_fails(self, memory_store, validator):
        record = await memory_store.create(build_record(allowed_domains=["example.com"]))

        allowed = await validator.validate(
            record.token, "report", RequestMetadata(ip="1.1.1.1", host="portal.example.com")
        )
        rejected = await validator.validate(
            record.token, "report", RequestMetadata(ip="1.1.1.1", host="notexample.com")
        )

        assert allowed.valid is True
        assert rejected.reason == DenialReason.DOMAIN_NOT_ALLOWED

    async def test_missing_host_skips_domain_check(self, memory_store, validator):
        record = await memory_store.create(build_record(allowed_domains=["example.com"]))

        result = await validator.validate(record.token, "report", RequestMetadata(ip="1.1.1.1"))

        assert result.valid is True

    @pytest.mark.parametrize("host,expected", [
        ("example.com", True),
        ("a.b.example.com", True),
        ("example.com.evil.test", False),
        ("xexample.com", False),
    ])
    def test_host_allowed(self, host, expected):
        assert host_allowed(host, ["example.com"]) is expected


class TestPageScope:
    """Page normalization and wildcard"""

    async def test_suffix_and_case_are_ignored(self, memory_store, validator):
        record = await memory_store.create(build_record(allowed_pages=["Report.html"]))

        result = await validator.validate(record.token, "report", META)

        assert result.valid is True
        assert result.page == "report"

    async def test_wildcard_allows_any_page(self, memory_store, validator):
        record = await memory_store.create(build_record(allowed_pages=["*"]))

        for page in ["report", "Anything.HTML", "zzz"]:
            assert (await validator.validate(record.token, page)).valid is True

    def test_page_allowed_normalizes_allowed_entries(self):
        assert page_allowed("dash", ["DASH.HTML"]) is True
        assert page_allowed("dash", ["dashboard"]) is False


class TestAccessLogging:
    """Audit log side effects of successful validation"""

    async def test_success_appends_normalized_event(self, memory_store, validator):
        record = await memory_store.create(build_record(
            allowed_pages=["dash"],
            expires_at=utc_now() + timedelta(days=365),
        ))

        result = await validator.validate(record.token, "dash.html", META)

        assert result.valid is True
        stored = await memory_store.get(record.id)
        assert stored.access_count == 1
        assert len(stored.access_log) == 1
        event = stored.access_log[0]
        assert event.page == "dash"
        assert event.ip == "203.0.113.7"
        assert event.user_agent == "pytest-agent"
        assert stored.last_accessed_at == event.timestamp

    async def test_dry_run_has_no_side_effects(self, memory_store, validator):
        record = await memory_store.create(build_record())

        result = await validator.validate(record.token, "report")

        assert result.valid is True
        stored = await memory_store.get(record.id)
        assert stored.access_log == []
        assert stored.access_count == 0
        assert stored.last_accessed_at is None

    async def test_denial_does_not_log(self, memory_store, validator):
        record = await memory_store.create(build_record(allowed_pages=["report"]))

        await validator.validate(record.token, "other", META)

        stored = await memory_store.get(record.id)
        assert stored.access_count == 0

    async def test_retention_keeps_newest_hundred(self):
        store = InMemoryTokenStore()
        clock = SteppingClock(datetime(2030, 1, 1, tzinfo=timezone.utc))
        record = await store.create(build_record(expires_at=datetime(2031, 1, 1, tzinfo=timezone.utc)))
        validator = AccessValidator(store, clock=clock)

        for i in range(150):
            result = await validator.validate(
                record.token, "report", RequestMetadata(ip=f"10.0.0.{i % 250}")
            )
            assert result.valid is True

        stored = await store.get(record.id)
        assert stored.access_count == 150
        assert len(stored.access_log) == 100
        timestamps = [e.timestamp for e in stored.access_log]
        assert timestamps == sorted(timestamps)
        assert timestamps[0] == datetime(2030, 1, 1, tzinfo=timezone.utc) + timedelta(seconds=50)
        assert stored.access_log[-1].ip == "10.0.0.149"


class TestFailClosed:
    """Store failures never grant access"""

    async def test_lookup_error_maps_to_not_found(self):
        store = AsyncMock()
        store.find_by_token_value.side_effect = ConnectionError("database unreachable")
        validator = AccessValidator(store)

        result = await validator.validate("any-token", "report", META)

        assert result.valid is False
        assert result.reason == DenialReason.TOKEN_NOT_FOUND

    async def test_lookup_timeout_maps_to_not_found(self):
        store = AsyncMock()
        store.find_by_token_value.side_effect = TimeoutError()
        validator = AccessValidator(store)

        result = await validator.validate("any-token", "report")

        assert result.reason == DenialReason.TOKEN_NOT_FOUND

    async def test_logging_failure_keeps_authorization(self, memory_store):
        record = await memory_store.create(build_record())
        memory_store.append_access_event = AsyncMock(side_effect=RuntimeError("disk full"))
        validator = AccessValidator(memory_store)

        result = await validator.validate(record.token, "report", META)

        assert result.valid is True
        assert result.token.id == record.id
        memory_store.append_access_event.assert_awaited_once()

    async def test_vanished_record_keeps_authorization(self, memory_store):
        record = await memory_store.create(build_record())
        memory_store.append_access_event = AsyncMock(return_value=False)
        validator = AccessValidator(memory_store)

        result = await validator.validate(record.token, "report", META)

        assert result.valid is True
