"""
End-to-end label extraction.

The pattern matcher runs first because it is free and always available. Only
when it finds no SKU at all are the remote backends sampled and reconciled.
"""

import asyncio
import logging
from typing import Optional

from skulabels.config import Settings, settings
from skulabels.models.domain import ExtractionEngine, ExtractionReport, ExtractionSource, RemoteProvider
from skulabels.services.base_backend import DeterministicBackend
from skulabels.services.errors import ConfigurationError, NoRecordsFoundError
from skulabels.services.remote_backends import build_remote_backend
from skulabels.services.retry import RetryPolicy
from skulabels.services.text_utils import normalize_text
from skulabels.workers.consensus import ConsensusReconciler

logger = logging.getLogger(__name__)


class Orchestrator:
    def __init__(
        self,
        reconciler: Optional[ConsensusReconciler] = None,
        deterministic: Optional[DeterministicBackend] = None,
        log: Optional[logging.Logger] = None,
    ):
        self.reconciler = reconciler
        self.deterministic = deterministic or DeterministicBackend()
        self.log = log or logger

    async def extract(self, text: str, engine: ExtractionEngine = ExtractionEngine.AUTO) -> ExtractionReport:
        normalized = normalize_text(text)

        if engine != ExtractionEngine.REMOTE:
            records = self.deterministic.match(text)
            if records:
                self.log.info(f"Pattern matcher found {len(records)} SKUs, skipping remote extraction")
                return ExtractionReport(records=records, source=ExtractionSource.DETERMINISTIC)
            if engine == ExtractionEngine.LOCAL:
                return ExtractionReport()

        if self.reconciler is None:
            if engine == ExtractionEngine.REMOTE:
                raise ConfigurationError("Remote extraction requested but no remote backend is configured")
            self.log.warning("Pattern matcher found nothing and no remote backend is configured")
            return ExtractionReport()

        self.log.info(f"Falling back to {self.reconciler.backend.name} with {self.reconciler.samples} samples")
        consensus = await self.reconciler.reconcile(normalized)
        source = ExtractionSource.REMOTE if consensus.records else ExtractionSource.NONE
        return ExtractionReport(records=consensus.records, source=source, consensus=consensus)

    async def require_records(
        self,
        text: str,
        engine: ExtractionEngine = ExtractionEngine.AUTO,
    ) -> ExtractionReport:
        report = await self.extract(text, engine)
        if not report.is_empty:
            return report
        if report.consensus and report.consensus.failures:
            raise NoRecordsFoundError(
                "Could not identify any SKU or barcode in the document; "
                f"{len(report.consensus.failures)} of {report.consensus.samples} remote extraction attempts failed."
            )
        raise NoRecordsFoundError()


def build_orchestrator(
    config: Optional[Settings] = None,
    provider: Optional[RemoteProvider] = None,
    log: Optional[logging.Logger] = None,
) -> Orchestrator:
    config = config or settings
    try:
        backend = build_remote_backend(config, provider)
    except ConfigurationError as e:
        logger.info(f"Remote extraction disabled: {e}")
        return Orchestrator(log=log)

    reconciler = ConsensusReconciler(
        backend,
        retry_policy=RetryPolicy.from_settings(config),
        samples=config.consensus_samples,
        log=log,
    )
    return Orchestrator(reconciler=reconciler, log=log)


def run_extraction(
    text: str,
    engine: ExtractionEngine = ExtractionEngine.AUTO,
    config: Optional[Settings] = None,
) -> ExtractionReport:
    """Synchronous entry point for callers without an event loop."""
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(build_orchestrator(config).extract(text, engine))
    raise RuntimeError("Cannot run async code from within async context. Use await instead.")
