"""
Bounded retry for a single backend invocation.

Overload and timeout failures back off exponentially and escalate once the
attempt ceiling is hit. Rate limiting backs off linearly and, when the ceiling
is hit, resolves to an empty answer so the consensus vote can continue with
fewer samples. Malformed and fatal failures are never retried.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable

from skulabels.config import Settings
from skulabels.models.domain import LabelRecord
from skulabels.services.base_backend import ExtractionBackend
from skulabels.services.errors import BackendTimeoutError, BackendUnavailableError, RateLimitedError

logger = logging.getLogger(__name__)

SleepFn = Callable[[float], Awaitable[None]]
ExtractCall = Callable[[], Awaitable[list[LabelRecord]]]


@dataclass(frozen=True)
class RetryPolicy:
    base_delay: float = 1.0
    unavailable_max_attempts: int = 3
    rate_limit_max_attempts: int = 5
    sleep: SleepFn = asyncio.sleep

    @classmethod
    def from_settings(cls, config: Settings, sleep: SleepFn = asyncio.sleep) -> "RetryPolicy":
        return cls(
            base_delay=config.retry_base_delay,
            unavailable_max_attempts=config.unavailable_max_attempts,
            rate_limit_max_attempts=config.rate_limit_max_attempts,
            sleep=sleep,
        )

    def exponential_delay(self, attempt: int) -> float:
        """Delay before ``attempt`` (1-indexed, >= 2) after an overload."""
        return self.base_delay * (2 ** max(0, attempt - 2))

    def linear_delay(self, attempt: int) -> float:
        """Delay before ``attempt`` (1-indexed, >= 2) after rate limiting."""
        return self.base_delay * attempt

    async def run(self, call: ExtractCall, label: str = "backend") -> list[LabelRecord]:
        attempt = 1
        while True:
            try:
                return await call()
            except (BackendUnavailableError, BackendTimeoutError) as e:
                if attempt >= self.unavailable_max_attempts:
                    logger.error(f"{label} still {e.kind.value} after {attempt} attempts: {e}")
                    raise
                delay = self.exponential_delay(attempt + 1)
                logger.warning(
                    f"{label} {e.kind.value} (attempt {attempt}/{self.unavailable_max_attempts}), "
                    f"retrying in {delay:.2f}s"
                )
            except RateLimitedError as e:
                if attempt >= self.rate_limit_max_attempts:
                    logger.warning(f"{label} rate limited after {attempt} attempts, giving up with no records")
                    return []
                delay = self.linear_delay(attempt + 1)
                logger.warning(
                    f"Rate limited (attempt {attempt}/{self.rate_limit_max_attempts}), "
                    f"waiting {delay:.2f}s before retry"
                )
            await self.sleep(delay)
            attempt += 1

    async def invoke(self, backend: ExtractionBackend, text: str) -> list[LabelRecord]:
        return await self.run(lambda: backend.extract(text), label=backend.name)
