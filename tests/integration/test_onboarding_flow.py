"""End-to-end onboarding flows."""

import pytest

from tradeflow.backends import InMemoryBackend
from tradeflow.config import TradeflowConfig
from tradeflow.controller import TransitionOutcome
from tradeflow.contracts import WorkflowState
from tradeflow.session import create_controller
from tradeflow.snapshots import InMemorySnapshotStore
from tradeflow.workflows import preselected_launch

CREDENTIALS = {
    "email": "Pat@Example.com",
    "password": "secret1",
    "confirm_password": "secret1",
}


def _controller(store, backend, **kwargs):
    return create_controller(
        "onboarding", "browser-1", config=TradeflowConfig(), store=store, backend=backend, **kwargs
    )


@pytest.mark.asyncio
async def test_full_onboarding_without_identity():
    store = InMemorySnapshotStore()
    backend = InMemoryBackend()
    controller = _controller(store, backend)
    await controller.start()

    await controller.go_next({"action": "hiring"})
    await controller.go_next({"user_type": "individual"})
    await controller.go_next({"role": "homeowner"})
    result = await controller.go_next(CREDENTIALS)

    assert result.outcome is TransitionOutcome.COMPLETED
    assert result.submission.navigate_to == "/onboarding/homeowner"
    [row] = backend.tables["signups"]
    assert row["email"] == "pat@example.com"
    assert "password" not in row
    assert backend.eligibility_calls == []


@pytest.mark.asyncio
async def test_passwords_never_reach_the_snapshot():
    store = InMemorySnapshotStore()
    backend = InMemoryBackend()
    backend.fail_insert = "duplicate key value violates unique constraint"
    controller = _controller(store, backend)
    await controller.start()
    await controller.go_next({"action": "provider"})
    await controller.go_next({"user_type": "business"})
    await controller.go_next({"role": "contractor"})

    mismatch = await controller.go_next({**CREDENTIALS, "confirm_password": "different"})
    assert mismatch.errors == {"confirm_password": ["Passwords do not match"]}

    failed = await controller.go_next(CREDENTIALS)
    assert failed.outcome is TransitionOutcome.FAILED
    assert failed.submission.error.message == "duplicate key value violates unique constraint"

    await controller.go_back()
    [key] = store.keys()
    assert "secret1" not in await store.get(key)


@pytest.mark.asyncio
async def test_initial_action_starts_at_account_type_with_guard():
    controller = _controller(InMemorySnapshotStore(), InMemoryBackend())
    await controller.start(**preselected_launch(action="provider"))
    assert controller.current_step.id == "user_type"
    assert controller.min_reachable_step == 1

    await controller.go_next({"user_type": "business"})
    assert (await controller.go_back()).step_id == "user_type"
    assert (await controller.go_back()).outcome is TransitionOutcome.UNCHANGED


@pytest.mark.asyncio
async def test_resumed_onboarding_keeps_choices():
    store = InMemorySnapshotStore()
    await store.set(
        "tradeflow:onboarding:browser-1",
        WorkflowState(
            step_index=2, fields={"action": "provider", "user_type": "business"}, history=[0, 1]
        ).to_json(),
    )
    controller = _controller(store, InMemoryBackend())
    state = await controller.start()
    assert state.step_index == 2

    result = await controller.go_next({"role": "homeowner"})
    assert result.outcome is TransitionOutcome.INVALID
    assert (await controller.go_next({"role": "contractor"})).step_id == "signup"
