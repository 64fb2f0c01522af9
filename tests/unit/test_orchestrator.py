import pytest

from skulabels.config import Settings
from skulabels.models.domain import ConsensusConfidence, ExtractionEngine, ExtractionSource, LabelRecord
from skulabels.services.errors import ConfigurationError, MalformedResponseError, NoRecordsFoundError
from skulabels.services.orchestrator import Orchestrator, build_orchestrator, run_extraction
from skulabels.services.remote_backends import GeminiBackend, OpenAIBackend
from skulabels.workers.consensus import ConsensusReconciler

MATCHING_TEXT = "... seller sku: ABC123 ...\n barcode: 7891234567890 ...\n seller sku: abc123 ..."
UNMATCHED_TEXT = "Pedido 4471\n\nProduto: camiseta azul   tamanho M\nEAN 7891234567890"


def make_orchestrator(backend) -> Orchestrator:
    return Orchestrator(reconciler=ConsensusReconciler(backend, samples=3))


@pytest.mark.asyncio
async def test_deterministic_match_skips_remote(scripted_backend, records_a):
    backend = scripted_backend([records_a])

    report = await make_orchestrator(backend).extract(MATCHING_TEXT)

    assert report.source == ExtractionSource.DETERMINISTIC
    assert report.records == [LabelRecord("ABC123", "7891234567890", 2)]
    assert report.consensus is None
    assert report.total_labels == 2
    assert backend.calls == 0


@pytest.mark.asyncio
async def test_falls_back_to_remote_when_no_sku_matches(scripted_backend, records_a):
    backend = scripted_backend([records_a])

    report = await make_orchestrator(backend).extract(UNMATCHED_TEXT)

    assert backend.calls == 3
    assert backend.texts[0] == "Pedido 4471 Produto: camiseta azul tamanho M EAN 7891234567890"
    assert report.source == ExtractionSource.REMOTE
    assert report.records == records_a
    assert report.consensus.confidence == ConsensusConfidence.MAJORITY


@pytest.mark.asyncio
async def test_remote_failures_give_empty_report(scripted_backend):
    backend = scripted_backend([MalformedResponseError("bad json")])

    report = await make_orchestrator(backend).extract(UNMATCHED_TEXT)

    assert report.is_empty
    assert report.source == ExtractionSource.NONE
    assert report.consensus.confidence == ConsensusConfidence.EMPTY


@pytest.mark.asyncio
async def test_local_engine_never_calls_remote(scripted_backend, records_a):
    backend = scripted_backend([records_a])

    report = await make_orchestrator(backend).extract(UNMATCHED_TEXT, ExtractionEngine.LOCAL)

    assert report.is_empty
    assert backend.calls == 0


@pytest.mark.asyncio
async def test_remote_engine_skips_matcher(scripted_backend, records_b):
    backend = scripted_backend([records_b])

    report = await make_orchestrator(backend).extract(MATCHING_TEXT, ExtractionEngine.REMOTE)

    assert report.source == ExtractionSource.REMOTE
    assert report.records == records_b
    assert backend.calls == 3


@pytest.mark.asyncio
async def test_remote_engine_requires_backend():
    with pytest.raises(ConfigurationError):
        await Orchestrator().extract(MATCHING_TEXT, ExtractionEngine.REMOTE)


@pytest.mark.asyncio
async def test_auto_without_backend_is_empty():
    report = await Orchestrator().extract(UNMATCHED_TEXT)
    assert report.is_empty
    assert report.consensus is None


@pytest.mark.asyncio
async def test_require_records_raises_when_nothing_found():
    with pytest.raises(NoRecordsFoundError):
        await Orchestrator().require_records(UNMATCHED_TEXT)


@pytest.mark.asyncio
async def test_require_records_mentions_failed_attempts(scripted_backend):
    backend = scripted_backend([MalformedResponseError("bad json")])

    with pytest.raises(NoRecordsFoundError, match="3 of 3 remote extraction attempts failed"):
        await make_orchestrator(backend).require_records(UNMATCHED_TEXT)


def test_build_orchestrator_without_keys():
    orchestrator = build_orchestrator(Settings(openai_api_key=None, gemini_api_key=None))
    assert orchestrator.reconciler is None


def test_build_orchestrator_with_openai():
    orchestrator = build_orchestrator(Settings(openai_api_key="sk-test", consensus_samples=5, retry_base_delay=0.1))
    assert isinstance(orchestrator.reconciler.backend, OpenAIBackend)
    assert orchestrator.reconciler.samples == 5
    assert orchestrator.reconciler.min_votes == 3
    assert orchestrator.reconciler.retry_policy.base_delay == 0.1


def test_build_orchestrator_with_gemini():
    orchestrator = build_orchestrator(Settings(remote_provider="gemini", gemini_api_key="g-test"))
    assert isinstance(orchestrator.reconciler.backend, GeminiBackend)


def test_run_extraction_is_synchronous():
    report = run_extraction(MATCHING_TEXT, config=Settings(openai_api_key=None, gemini_api_key=None))
    assert report.records == [LabelRecord("ABC123", "7891234567890", 2)]


@pytest.mark.asyncio
async def test_seller_name_on_its_own_line_falls_back_to_remote(scripted_backend, records_a):
    backend = scripted_backend([records_a])
    text = "Seller: Loja Alpha\nItem camiseta azul\nEAN 7891234567890\n"

    report = await make_orchestrator(backend).extract(text)

    assert backend.calls == 3
    assert backend.texts[0] == "Seller: Loja Alpha Item camiseta azul EAN 7891234567890"
    assert report.source == ExtractionSource.REMOTE
