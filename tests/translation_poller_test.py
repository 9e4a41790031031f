import asyncio
import dataclasses
from unittest.mock import AsyncMock

import pytest

from model_viewer.core.exceptions import (
    TranslationCancelledError,
    TranslationError,
    TranslationTimeoutError,
)
from model_viewer.services.model_translator import ModelTranslator
from model_viewer.services.translation_poller import PollPolicy, await_translate_job

from .conftest import manifest

URN = "dXJuOmFkc2s"


def fast_policy(**overrides) -> PollPolicy:
    return PollPolicy(**{"interval": 0, "max_attempts": 10, "max_duration": None, **overrides})


@pytest.mark.asyncio
async def test_returns_when_complete_and_successful():
    derivative = AsyncMock()
    derivative.get_manifest.side_effect = [
        manifest("pending", "pending"),
        manifest("inprogress", "50% complete"),
        manifest("success", "complete"),
    ]

    result = await await_translate_job(derivative, URN, fast_policy())

    assert result.status == "success"
    assert derivative.get_manifest.await_count == 3
    derivative.get_manifest.assert_awaited_with(URN)


@pytest.mark.asyncio
@pytest.mark.parametrize("status", ["failed", "timeout", "partialsuccess"])
async def test_complete_without_success_raises(status: str):
    derivative = AsyncMock()
    derivative.get_manifest.side_effect = [manifest("inprogress", "99% complete"), manifest(status, "complete")]

    with pytest.raises(TranslationError, match="Could not translate file"):
        await await_translate_job(derivative, URN, fast_policy())


@pytest.mark.asyncio
async def test_partial_success_can_be_accepted():
    derivative = AsyncMock()
    derivative.get_manifest.return_value = manifest("partialsuccess", "complete")

    result = await await_translate_job(derivative, URN, fast_policy(accept_partial_success=True))

    assert result.status == "partialsuccess"


@pytest.mark.asyncio
async def test_keeps_polling_while_pending_until_attempts_run_out():
    derivative = AsyncMock()
    derivative.get_manifest.return_value = manifest("inprogress", "10% complete")

    with pytest.raises(TranslationTimeoutError):
        await await_translate_job(derivative, URN, fast_policy(max_attempts=4))

    assert derivative.get_manifest.await_count == 4


@pytest.mark.asyncio
async def test_gives_up_after_max_duration():
    derivative = AsyncMock()
    derivative.get_manifest.return_value = manifest("pending", "pending")

    with pytest.raises(TranslationTimeoutError):
        await await_translate_job(derivative, URN, fast_policy(max_attempts=None, max_duration=0))

    assert derivative.get_manifest.await_count == 1


@pytest.mark.asyncio
async def test_cancel_event_aborts_between_attempts():
    cancel = asyncio.Event()
    derivative = AsyncMock()

    async def first_poll_then_cancel(urn):
        cancel.set()
        return manifest("inprogress", "20% complete")

    derivative.get_manifest.side_effect = first_poll_then_cancel

    with pytest.raises(TranslationCancelledError):
        await await_translate_job(derivative, URN, fast_policy(interval=30), cancel_event=cancel)

    assert derivative.get_manifest.await_count == 1


@pytest.mark.asyncio
async def test_task_cancellation_stops_the_loop():
    derivative = AsyncMock()
    derivative.get_manifest.return_value = manifest("pending", "pending")

    task = asyncio.create_task(
        await_translate_job(derivative, URN, PollPolicy(interval=30, max_attempts=None, max_duration=None))
    )
    await asyncio.sleep(0)
    await asyncio.sleep(0)
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task


def test_poll_policy_cannot_be_mutated():
    policy = PollPolicy()

    with pytest.raises(dataclasses.FrozenInstanceError):
        policy.interval = 0  # type: ignore[misc]


def test_translators_do_not_share_a_default_policy():
    first = ModelTranslator(AsyncMock(), AsyncMock(), default_bucket_key="a")
    second = ModelTranslator(AsyncMock(), AsyncMock(), default_bucket_key="b")

    assert first.poll_policy == PollPolicy()
    assert first.poll_policy is not second.poll_policy
