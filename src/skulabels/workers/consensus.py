import asyncio
import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Optional, Sequence

from skulabels.models.domain import ConsensusConfidence, ConsensusResult, LabelRecord
from skulabels.services.base_backend import ExtractionBackend
from skulabels.services.errors import ExtractionError, ExtractionErrorKind
from skulabels.services.retry import RetryPolicy

logger = logging.getLogger(__name__)

DEFAULT_SAMPLES = 3


@dataclass(frozen=True)
class ExtractionAttempt:
    index: int
    records: list[LabelRecord] = field(default_factory=list)
    error: str | None = None
    error_kind: Optional[ExtractionErrorKind] = None

    @property
    def usable(self) -> bool:
        return self.error is None and bool(self.records)


def record_signature(records: Sequence[LabelRecord]) -> str:
    return "\n".join(sorted(record.signature_key() for record in records))


def default_min_votes(samples: int) -> int:
    return max(2, samples // 2 + 1)


def _to_attempt(index: int, raw: object) -> ExtractionAttempt:
    if isinstance(raw, ExtractionError):
        return ExtractionAttempt(index=index, error=str(raw), error_kind=raw.kind)
    if isinstance(raw, Exception):
        return ExtractionAttempt(index=index, error=f"{type(raw).__name__}: {raw}", error_kind=ExtractionErrorKind.FATAL)
    if isinstance(raw, BaseException):
        raise raw
    return ExtractionAttempt(index=index, records=list(raw))


def vote(
    attempts: Sequence[ExtractionAttempt],
    min_votes: int = 2,
    log: Optional[logging.Logger] = None,
) -> ConsensusResult:
    """Pick the answer most samples agree on exactly.

    Failed and empty attempts are dropped. Signatures are tallied in
    invocation order, so between equally voted signatures the one seen first
    wins. When no signature reaches ``min_votes`` the first usable attempt is
    returned, reporting the top tally it fell short with.
    """
    log = log or logger
    failures = [f"attempt {a.index}: {a.error}" for a in attempts if a.error is not None]
    survivors = [a for a in attempts if a.usable]
    if not survivors:
        log.warning(f"No usable samples out of {len(attempts)}")
        return ConsensusResult.empty(samples=len(attempts), failures=failures)

    signatures = [record_signature(a.records) for a in survivors]
    tally = Counter(signatures)
    winner, votes = None, 0
    for signature in signatures:
        if tally[signature] > votes:
            winner, votes = signature, tally[signature]

    log.info(f"Consensus tally: {len(tally)} distinct answers from {len(survivors)} usable samples, top={votes}")

    if votes >= min_votes:
        chosen = survivors[signatures.index(winner)]
        return ConsensusResult(
            records=list(chosen.records),
            confidence=ConsensusConfidence.MAJORITY,
            votes=votes,
            samples=len(attempts),
            failures=failures,
        )

    return ConsensusResult(
        records=list(survivors[0].records),
        confidence=ConsensusConfidence.NO_CONSENSUS,
        votes=votes,
        samples=len(attempts),
        failures=failures,
    )


class ConsensusReconciler:
    """Samples a non-deterministic backend several times and votes on the answers."""

    def __init__(
        self,
        backend: ExtractionBackend,
        retry_policy: Optional[RetryPolicy] = None,
        samples: int = DEFAULT_SAMPLES,
        min_votes: Optional[int] = None,
        log: Optional[logging.Logger] = None,
    ):
        if samples < 1:
            raise ValueError(f"samples must be >= 1, got {samples}")
        self.backend = backend
        self.retry_policy = retry_policy or RetryPolicy()
        self.samples = samples
        self.min_votes = min_votes if min_votes is not None else default_min_votes(samples)
        self.log = log or logger

    async def collect(self, text: str) -> list[ExtractionAttempt]:
        coros = [self.retry_policy.invoke(self.backend, text) for _ in range(self.samples)]
        results = await asyncio.gather(*coros, return_exceptions=True)
        attempts = [_to_attempt(i, raw) for i, raw in enumerate(results)]
        for attempt in attempts:
            if attempt.error is not None:
                self.log.warning(f"{self.backend.name} sample {attempt.index} failed: {attempt.error}")
        return attempts

    async def reconcile(self, text: str) -> ConsensusResult:
        attempts = await self.collect(text)
        result = vote(attempts, min_votes=self.min_votes, log=self.log)
        self.log.info(
            f"{self.backend.name} consensus: {result.confidence.value}, "
            f"{len(result.records)} records, {len(result.failures)} failed samples"
        )
        return result
