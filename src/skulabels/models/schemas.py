from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from skulabels.models.domain import ConsensusConfidence, ExtractionEngine, ExtractionSource, RemoteProvider


class RemoteRecordPayload(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)

    identifier: str = Field(..., min_length=1, max_length=64)
    scan_payload: str = Field(..., min_length=1, max_length=128)
    count: int = Field(..., gt=0)
    confidence: Optional[int] = Field(default=None, ge=0, le=100)


class RemoteExtractionPayload(BaseModel):
    """The single response shape every remote backend must return."""

    model_config = ConfigDict(extra="forbid", strict=True)

    records: List[RemoteRecordPayload]


class ExtractionRequest(BaseModel):
    text: str = Field(..., min_length=1, description="Text extracted from every page of the document")
    engine: ExtractionEngine = Field(default=ExtractionEngine.AUTO, description="auto, local or remote")
    provider: Optional[RemoteProvider] = Field(
        default=None,
        description="Remote backend for this request; the configured provider when omitted",
    )


class LabelRecordResponse(BaseModel):
    identifier: str
    scan_payload: str
    count: int

    model_config = {"from_attributes": True}


class ExtractionResponse(BaseModel):
    records: List[LabelRecordResponse]
    source: ExtractionSource
    confidence: Optional[ConsensusConfidence] = None
    total_labels: int
