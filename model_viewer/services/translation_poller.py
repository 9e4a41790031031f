import asyncio
import time
from dataclasses import dataclass
from typing import Optional

import structlog

from model_viewer.core.config import Settings
from model_viewer.core.exceptions import (
    TranslationCancelledError,
    TranslationError,
    TranslationTimeoutError,
)
from model_viewer.domain.interfaces import DerivativeService
from model_viewer.domain.models import Manifest

logger = structlog.get_logger()


@dataclass(frozen=True)
class PollPolicy:
    """
    How long to wait for a translation job.
    None disables the corresponding bound.
    """

    interval: float = 5.0  # seconds
    max_attempts: Optional[int] = 720
    max_duration: Optional[float] = 3600.0  # seconds
    accept_partial_success: bool = False

    @classmethod
    def from_settings(cls, settings: Settings) -> "PollPolicy":
        return cls(
            interval=settings.POLLING_INTERVAL,
            max_attempts=settings.POLLING_MAX_ATTEMPTS,
            max_duration=settings.POLLING_TIMEOUT,
            accept_partial_success=settings.ACCEPT_PARTIAL_SUCCESS,
        )


async def _pause(interval: float, cancel_event: Optional[asyncio.Event]) -> None:
    if cancel_event is None:
        await asyncio.sleep(interval)
        return

    try:
        await asyncio.wait_for(cancel_event.wait(), timeout=interval)
    except asyncio.TimeoutError:
        return


async def await_translate_job(
    derivative: DerivativeService,
    urn: str,
    policy: Optional[PollPolicy] = None,
    cancel_event: Optional[asyncio.Event] = None,
) -> Manifest:
    """
    Polls the manifest until progress reports "complete".
    Returns the final manifest on success, raises TranslationError otherwise.
    """
    policy = policy or PollPolicy()
    started = time.monotonic()
    attempts = 0

    while True:
        if cancel_event is not None and cancel_event.is_set():
            raise TranslationCancelledError(f"Translation of {urn} was cancelled")

        manifest = await derivative.get_manifest(urn)
        attempts += 1

        if manifest.is_complete:
            if manifest.status == "success":
                logger.info("translation_complete", urn=urn, attempts=attempts)
                return manifest

            if manifest.status == "partialsuccess" and policy.accept_partial_success:
                logger.warning("translation_partially_complete", urn=urn, attempts=attempts)
                return manifest

            logger.error("translation_failed", urn=urn, status=manifest.status)
            raise TranslationError(f"Could not translate file (status: {manifest.status})")

        logger.info("translation_progress", urn=urn, progress=manifest.progress, attempt=attempts)

        if policy.max_attempts is not None and attempts >= policy.max_attempts:
            raise TranslationTimeoutError(f"Translation of {urn} not complete after {attempts} attempts")

        if policy.max_duration is not None and time.monotonic() - started >= policy.max_duration:
            raise TranslationTimeoutError(f"Translation of {urn} not complete after {policy.max_duration}s")

        await _pause(policy.interval, cancel_event)
