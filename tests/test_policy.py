"""Tests for the password-change and login enforcement policies."""

import asyncio
import time

import pytest

from pwnedcheck.accounts.base import AccountStoreError, RotationUpdateError
from pwnedcheck.breach.client import RangeClient, parse_range_response
from pwnedcheck.breach.evaluator import BreachEvaluator
from pwnedcheck.enforcement import (
    PASSWORD_BREACHED,
    BreachPolicy,
    EnforcementOutcome,
    LoginStage,
    get_message,
)

from conftest import BREACHED_RANGE, PASSWORD_PREFIX, UNRELATED_RANGE, StaticFetcher

STORED_HASH = "stored:password"


def make_verifier(events: list[str]):
    def verify(password: str, stored_hash: str) -> bool:
        events.append("verify")
        return stored_hash == f"stored:{password}"
    return verify


def make_policy(memory_store, events, response=None) -> tuple[BreachPolicy, StaticFetcher]:
    fetcher = StaticFetcher(response, events)
    policy = BreachPolicy(BreachEvaluator(fetcher), memory_store, make_verifier(events))
    return policy, fetcher


# =============================================================================
# Password change
# =============================================================================

def test_change_with_breached_password_warns(memory_store, events) -> None:
    """A breached new password yields a warning and no storage writes."""
    policy, fetcher = make_policy(memory_store, events, parse_range_response(BREACHED_RANGE))

    result = policy.on_password_change({"new_password": "password"})

    assert result.outcome == EnforcementOutcome.WARNING_ISSUED
    assert result.message_key == PASSWORD_BREACHED
    assert memory_store.rotation_marked == []
    assert "find" not in events


def test_change_with_safe_password_takes_no_action(memory_store, events) -> None:
    policy, _ = make_policy(memory_store, events, parse_range_response(UNRELATED_RANGE))

    result = policy.on_password_change({"new_password": "password"})

    assert result.outcome == EnforcementOutcome.NO_ACTION
    assert result.message_key is None


@pytest.mark.parametrize("data", [{}, {"email": "a@example.com"}, {"new_password": None}])
def test_change_without_new_password_never_evaluates(memory_store, events, data) -> None:
    """No new password field, zero evaluator calls."""
    policy, fetcher = make_policy(memory_store, events, parse_range_response(BREACHED_RANGE))

    result = policy.on_password_change(data)

    assert result.outcome == EnforcementOutcome.NO_ACTION
    assert fetcher.calls == []


def test_change_fails_open(memory_store, events) -> None:
    policy, _ = make_policy(memory_store, events, None)

    assert policy.on_password_change({"new_password": "password"}).outcome == EnforcementOutcome.NO_ACTION


@pytest.mark.asyncio
async def test_change_async(memory_store, events) -> None:
    policy, _ = make_policy(memory_store, events, parse_range_response(BREACHED_RANGE))

    result = await policy.on_password_change_async({"new_password": "password"})

    assert result.warning_issued


def test_warning_message_resolves_in_english_and_french() -> None:
    """The warning key renders in both shipped locales."""
    assert "found in a breach" in get_message(PASSWORD_BREACHED, "en")
    assert "fuite de données" in get_message(PASSWORD_BREACHED, "fr_FR")
    assert get_message(PASSWORD_BREACHED, "de") == get_message(PASSWORD_BREACHED, "en")

    with pytest.raises(KeyError):
        get_message("NOT_A_KEY")


# =============================================================================
# Login
# =============================================================================

def test_login_with_breached_password_forces_rotation(memory_store, events) -> None:
    """Verified login + breach match marks the account exactly once."""
    memory_store.add("alice", 7, STORED_HASH)
    policy, _ = make_policy(memory_store, events, parse_range_response(BREACHED_RANGE))

    result = policy.on_login_attempt("alice", "password")

    assert result.outcome == EnforcementOutcome.ROTATION_FORCED
    assert result.stage == LoginStage.BREACH_EVALUATED
    assert memory_store.rotation_marked == [7]
    assert events == ["find", "verify", "fetch", "mark"]


def test_login_verifies_before_breach_check(memory_store, events) -> None:
    """The breach check only ever runs after verification succeeds."""
    memory_store.add("alice", 7, STORED_HASH)
    policy, fetcher = make_policy(memory_store, events, parse_range_response(BREACHED_RANGE))

    result = policy.on_login_attempt("alice", "wrong-password")

    assert result.outcome == EnforcementOutcome.NO_ACTION
    assert result.stage == LoginStage.IDENTITY_RESOLVED
    assert fetcher.calls == []
    assert memory_store.rotation_marked == []
    assert events == ["find", "verify"]


def test_login_unknown_user_takes_no_action(memory_store, events) -> None:
    policy, fetcher = make_policy(memory_store, events, parse_range_response(BREACHED_RANGE))

    result = policy.on_login_attempt("mallory", "password")

    assert result.outcome == EnforcementOutcome.NO_ACTION
    assert result.stage == LoginStage.START
    assert events == ["find"]
    assert fetcher.calls == []


def test_login_without_stored_hash_takes_no_action(memory_store, events) -> None:
    memory_store.add("alice", 7, None)
    policy, fetcher = make_policy(memory_store, events, parse_range_response(BREACHED_RANGE))

    result = policy.on_login_attempt("alice", "password")

    assert result.outcome == EnforcementOutcome.NO_ACTION
    assert "verify" not in events
    assert fetcher.calls == []


def test_login_with_unreadable_hash_takes_no_action(memory_store, events) -> None:
    """A verifier rejecting the stored hash format counts as a mismatch."""
    memory_store.add("alice", 7, "garbage")

    def verify(password, stored_hash):
        raise ValueError("Unrecognised password hash format")

    fetcher = StaticFetcher(parse_range_response(BREACHED_RANGE))
    policy = BreachPolicy(BreachEvaluator(fetcher), memory_store, verify)

    assert policy.on_login_attempt("alice", "password").outcome == EnforcementOutcome.NO_ACTION
    assert fetcher.calls == []


def test_login_normalizes_username(memory_store, events) -> None:
    """"Alice " resolves the same account as "alice"."""
    memory_store.add("alice", 7, STORED_HASH)
    policy, _ = make_policy(memory_store, events, parse_range_response(BREACHED_RANGE))

    result = policy.on_login_attempt("Alice ", "password")

    assert result.rotation_forced
    assert memory_store.rotation_marked == [7]


def test_login_breach_service_down_allows_login(memory_store, events) -> None:
    """Service unavailable: no rotation, no error."""
    memory_store.add("alice", 7, STORED_HASH)
    policy, _ = make_policy(memory_store, events, None)

    result = policy.on_login_attempt("alice", "password")

    assert result.outcome == EnforcementOutcome.NO_ACTION
    assert result.stage == LoginStage.BREACH_EVALUATED
    assert memory_store.rotation_marked == []


def test_login_safe_password_takes_no_action(memory_store, events) -> None:
    memory_store.add("alice", 7, STORED_HASH)
    policy, fetcher = make_policy(memory_store, events, parse_range_response(UNRELATED_RANGE))

    result = policy.on_login_attempt("alice", "password", timeout=2.0)

    assert result.outcome == EnforcementOutcome.NO_ACTION
    assert fetcher.calls == [(PASSWORD_PREFIX, 2.0)]
    assert memory_store.rotation_marked == []


def test_login_rotation_update_not_applied_escalates(memory_store, events) -> None:
    """If no account row is updated the failure is raised."""
    memory_store.add("alice", 7, STORED_HASH)
    memory_store.update_result = False
    policy, _ = make_policy(memory_store, events, parse_range_response(BREACHED_RANGE))

    with pytest.raises(RotationUpdateError) as exc:
        policy.on_login_attempt("alice", "password")
    assert exc.value.user_id == 7


def test_login_rotation_store_error_escalates(memory_store, events) -> None:
    memory_store.add("alice", 7, STORED_HASH)

    def broken(user_id):
        raise AccountStoreError("database is locked")

    memory_store.mark_rotation_required = broken
    policy, _ = make_policy(memory_store, events, parse_range_response(BREACHED_RANGE))

    with pytest.raises(RotationUpdateError, match="database is locked"):
        policy.on_login_attempt("alice", "password")


@pytest.mark.asyncio
async def test_login_async_with_timed_out_service(range_service, memory_store, events) -> None:
    """A breach service that times out never blocks the login."""
    range_service.delay = 0.5
    range_service.bodies[PASSWORD_PREFIX] = BREACHED_RANGE
    memory_store.add("alice", 7, STORED_HASH)
    evaluator = BreachEvaluator(RangeClient(api_base=range_service.base_url))
    policy = BreachPolicy(evaluator, memory_store, make_verifier(events))

    result = await policy.on_login_attempt_async("alice", "password", timeout=0.05)

    assert result.outcome == EnforcementOutcome.NO_ACTION
    assert memory_store.rotation_marked == []


@pytest.mark.asyncio
async def test_login_async_forces_rotation(range_service, memory_store, events) -> None:
    range_service.bodies[PASSWORD_PREFIX] = BREACHED_RANGE
    memory_store.add("alice", 7, STORED_HASH)
    evaluator = BreachEvaluator(RangeClient(api_base=range_service.base_url))
    policy = BreachPolicy(evaluator, memory_store, make_verifier(events))

    result = await policy.on_login_attempt_async("alice", "password")

    assert result.rotation_forced
    assert memory_store.rotation_marked == [7]


def test_change_with_lone_surrogate_does_not_raise(memory_store, events) -> None:
    """Unencodable input still gets a verdict instead of an exception."""
    policy, fetcher = make_policy(memory_store, events, parse_range_response(BREACHED_RANGE))

    result = policy.on_password_change({"new_password": "pa\ud800ss"})

    assert result.outcome == EnforcementOutcome.NO_ACTION
    assert len(fetcher.calls) == 1


@pytest.mark.asyncio
async def test_blocking_login_inside_running_loop(memory_store, events) -> None:
    """Hosts already running a loop can still call the blocking entry points."""
    memory_store.add("alice", 7, STORED_HASH)
    policy, _ = make_policy(memory_store, events, parse_range_response(BREACHED_RANGE))

    result = policy.on_login_attempt("alice", "password")

    assert result.outcome == EnforcementOutcome.ROTATION_FORCED
    assert memory_store.rotation_marked == [7]
    assert policy.on_password_change({"new_password": "password"}).warning_issued


@pytest.mark.asyncio
async def test_login_async_keeps_loop_responsive(memory_store, events) -> None:
    """A slow credential check does not stall other tasks on the loop."""
    memory_store.add("alice", 7, STORED_HASH)
    verify = make_verifier(events)

    def slow_verify(password: str, stored_hash: str) -> bool:
        time.sleep(0.2)
        return verify(password, stored_hash)

    fetcher = StaticFetcher(parse_range_response(BREACHED_RANGE), events)
    policy = BreachPolicy(BreachEvaluator(fetcher), memory_store, slow_verify)

    ticks = 0
    stop = asyncio.Event()

    async def ticker() -> None:
        nonlocal ticks
        while not stop.is_set():
            ticks += 1
            await asyncio.sleep(0.01)

    task = asyncio.create_task(ticker())
    try:
        result = await policy.on_login_attempt_async("alice", "password")
    finally:
        stop.set()
        await task

    assert result.rotation_forced
    assert memory_store.rotation_marked == [7]
    assert ticks > 5
