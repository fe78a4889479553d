"""Tests for the eligibility gate."""

import pytest

from tradeflow.backends import InMemoryBackend
from tradeflow.errors import EligibilityCheckError
from tradeflow.gate import DenialReason, EligibilityGate, normalize_reason


@pytest.mark.asyncio
async def test_allowed_with_subscription_headroom():
    backend = InMemoryBackend(subscriptions={"user-1": (2, 5)})
    decision = await EligibilityGate(backend).check("user-1", "job")
    assert decision.allowed
    assert decision.message() is None
    assert backend.eligibility_calls == [("user-1", "job")]


@pytest.mark.asyncio
async def test_no_subscription():
    decision = await EligibilityGate(InMemoryBackend()).check("user-1", "job")
    assert not decision.allowed
    assert decision.reason is DenialReason.NO_SUBSCRIPTION
    assert "active subscription" in decision.message()


@pytest.mark.asyncio
async def test_quota_exceeded_carries_usage():
    backend = InMemoryBackend(subscriptions={"user-1": (3, 3)})
    decision = await EligibilityGate(backend).check("user-1", "job")
    assert decision.reason is DenialReason.QUOTA_EXCEEDED
    assert decision.current_usage == 3
    assert decision.limit == 3
    assert "(3/3)" in decision.message()


@pytest.mark.asyncio
async def test_missing_identity_is_unauthorized_without_calling_backend():
    backend = InMemoryBackend()
    decision = await EligibilityGate(backend).check(None, "job")
    assert decision.reason is DenialReason.UNAUTHORIZED
    assert backend.eligibility_calls == []


@pytest.mark.asyncio
async def test_transport_failure_propagates():
    backend = InMemoryBackend(subscriptions={"user-1": (0, 5)})
    backend.fail_eligibility = "connection reset"
    with pytest.raises(EligibilityCheckError, match="connection reset"):
        await EligibilityGate(backend).check("user-1", "job")


def test_reason_normalization():
    assert normalize_reason("job_limit_exceeded") is DenialReason.QUOTA_EXCEEDED
    assert normalize_reason("NO_SUBSCRIPTION") is DenialReason.NO_SUBSCRIPTION
    assert normalize_reason("banned") is DenialReason.UNAUTHORIZED
    assert normalize_reason(None) is DenialReason.UNAUTHORIZED


@pytest.mark.asyncio
async def test_backend_errors_are_reraised_unchanged():
    class BrokenBackend(InMemoryBackend):
        async def check_eligibility(self, identity_token, record_kind):
            raise TimeoutError("gate timed out")

    with pytest.raises(TimeoutError, match="gate timed out"):
        await EligibilityGate(BrokenBackend()).check("user-1", "job")
