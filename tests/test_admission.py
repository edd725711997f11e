# tests/test_admission.py
# -*- coding: utf-8 -*-
import asyncio
from datetime import timedelta

import pytest

from services.admission import AdmissionController
from services.errors import AdmissionAllowed, AdmissionDenied, DenialReason


@pytest.mark.asyncio
async def test_fresh_user_is_allowed_with_nine_remaining(admission):
    decision = await admission.check_admission(1)
    assert decision == AdmissionAllowed(remaining_daily_quota=9)


@pytest.mark.asyncio
async def test_check_does_not_mutate_state(admission):
    await admission.check_admission(1)
    await admission.check_admission(1)
    assert isinstance(await admission.check_admission(1), AdmissionAllowed)
    assert not admission.sessions.is_active(1)
    assert admission.tracked_users() == 0


@pytest.mark.asyncio
async def test_cooldown_reports_remaining_seconds(admission, clock):
    session = admission.record_session_start(1, 100, "pepe surfing")
    admission.record_session_success(session)
    clock.advance(5)
    decision = await admission.check_admission(1)
    assert isinstance(decision, AdmissionDenied)
    assert decision.reason is DenialReason.COOLDOWN
    assert decision.retry_after == 25


@pytest.mark.asyncio
async def test_cooldown_rounds_up(admission, clock):
    admission.record_session_success(admission.record_session_start(1, 100, "x"))
    clock.advance(29.5)
    decision = await admission.check_admission(1)
    assert decision.retry_after == 1
    clock.advance(0.5)
    assert isinstance(await admission.check_admission(1), AdmissionAllowed)


@pytest.mark.asyncio
async def test_daily_limit_denies_exactly_once_after_limit(admission, clock):
    outcomes = []
    for _ in range(11):
        decision, session = await admission.try_admit(7, 70, "pepe")
        outcomes.append(decision)
        if session:
            admission.record_session_success(session)
        clock.advance(31)
    denials = [d for d in outcomes if isinstance(d, AdmissionDenied)]
    assert len(denials) == 1
    assert denials[0].reason is DenialReason.DAILY_LIMIT
    assert outcomes[-2] == AdmissionAllowed(remaining_daily_quota=0)


@pytest.mark.asyncio
async def test_busy_while_session_active(sessions, clock, today):
    admission = AdmissionController(sessions, daily_limit=10, cooldown_seconds=0, clock=clock, today=today)
    admission.record_session_start(3, 30, "first")
    decision = await admission.check_admission(3)
    assert decision.reason is DenialReason.BUSY


@pytest.mark.asyncio
async def test_concurrent_try_admit_admits_once(sessions, clock, today):
    async def slow_member(user_id):
        await asyncio.sleep(0)
        return True

    admission = AdmissionController(sessions, membership_checker=slow_member, clock=clock, today=today)
    results = await asyncio.gather(*(admission.try_admit(5, 50, f"p{i}") for i in range(2)))
    admitted = [s for _, s in results if s is not None]
    denied = [d for d, s in results if s is None]
    assert len(admitted) == 1
    assert len(denied) == 1
    assert denied[0].reason is DenialReason.COOLDOWN


@pytest.mark.asyncio
async def test_membership_gate(sessions, clock, today):
    async def not_member(user_id):
        return False

    admission = AdmissionController(sessions, membership_checker=not_member, clock=clock, today=today)
    decision = await admission.check_admission(1)
    assert decision.reason is DenialReason.NOT_MEMBER


@pytest.mark.asyncio
async def test_membership_check_failure_fails_closed(sessions, clock, today):
    async def broken(user_id):
        raise RuntimeError("chat not found")

    admission = AdmissionController(sessions, membership_checker=broken, clock=clock, today=today)
    decision, session = await admission.try_admit(1, 1, "pepe")
    assert decision.reason is DenialReason.MEMBERSHIP_UNVERIFIED
    assert session is None
    assert not sessions.is_active(1)


@pytest.mark.asyncio
async def test_failure_does_not_consume_quota(admission, clock):
    session = admission.record_session_start(1, 1, "pepe")
    admission.record_session_failure(session)
    assert admission.used_today(1) == 0
    assert not admission.sessions.is_active(1)
    clock.advance(30)
    assert await admission.check_admission(1) == AdmissionAllowed(remaining_daily_quota=9)


@pytest.mark.asyncio
async def test_new_day_resets_quota(admission, clock, today):
    for _ in range(10):
        admission.record_session_success(admission.record_session_start(1, 1, "pepe"))
        clock.advance(31)
    assert (await admission.check_admission(1)).reason is DenialReason.DAILY_LIMIT
    today.day = today.day + timedelta(days=1)
    assert await admission.check_admission(1) == AdmissionAllowed(remaining_daily_quota=9)


def test_sweep_quotas_drops_stale_days(admission, clock, today):
    admission.record_session_success(admission.record_session_start(1, 1, "a"))
    today.day = today.day + timedelta(days=1)
    admission.record_session_success(admission.record_session_start(2, 2, "b"))
    assert admission.tracked_users() == 2
    assert admission.sweep_quotas() == 1
    assert admission.tracked_users() == 1


def test_reaped_session_still_counts_on_late_success(admission, clock):
    session = admission.record_session_start(1, 1, "slow")
    admission.sessions.reap_stale(max_age=300, now=clock() + 360)
    assert admission.record_session_success(session) == 1
    assert admission.used_today(1) == 1


@pytest.mark.asyncio
async def test_late_reaped_success_never_exceeds_daily_limit(admission, clock):
    for _ in range(9):
        admission.record_session_success(admission.record_session_start(1, 1, "pepe"))
        clock.advance(31)
    slow = admission.record_session_start(1, 1, "slow")
    clock.advance(360)
    admission.sessions.reap_stale(max_age=300)

    decision, fresh = await admission.try_admit(1, 1, "fresh")
    assert decision == AdmissionAllowed(remaining_daily_quota=0)
    assert admission.record_session_success(fresh) == 10

    assert admission.record_session_success(slow) == 10
    assert admission.used_today(1) == 10
