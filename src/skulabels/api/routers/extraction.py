"""API router for label extraction."""

import logging

from fastapi import APIRouter, Depends, HTTPException

from skulabels.api.dependencies import OrchestratorFactory, get_orchestrator_factory
from skulabels.models.domain import ExtractionReport
from skulabels.models.schemas import ExtractionRequest, ExtractionResponse, LabelRecordResponse
from skulabels.services.errors import ConfigurationError, NoRecordsFoundError

logger = logging.getLogger(__name__)

router = APIRouter()


def _to_response(report: ExtractionReport) -> ExtractionResponse:
    return ExtractionResponse(
        records=[LabelRecordResponse.model_validate(record) for record in report.records],
        source=report.source,
        confidence=report.consensus.confidence if report.consensus else None,
        total_labels=report.total_labels,
    )


@router.post("", response_model=ExtractionResponse)
async def extract_labels(
    request: ExtractionRequest,
    orchestrators: OrchestratorFactory = Depends(get_orchestrator_factory),
) -> ExtractionResponse:
    """
    Extract SKU/barcode label records from document text.

    Args:
        request: Text of every page, the engine and optionally the remote provider
        orchestrators: Returns the orchestrator for a remote provider

    Returns:
        Records sorted as produced, with the path that produced them

    Raises:
        HTTPException: 422 if nothing identifiable was found, 503 if the
            remote engine was requested without a configured backend
    """
    orchestrator = orchestrators(request.provider)
    try:
        report = await orchestrator.require_records(request.text, request.engine)
    except NoRecordsFoundError as e:
        logger.info(f"No label records found with engine={request.engine.value}")
        raise HTTPException(status_code=422, detail=e.message)
    except ConfigurationError as e:
        raise HTTPException(status_code=503, detail=str(e))

    return _to_response(report)
