from skulabels.models.domain import (
    ConsensusConfidence,
    ConsensusResult,
    ExtractionEngine,
    ExtractionReport,
    ExtractionSource,
    LabelRecord,
    MatchCandidate,
    RemoteProvider,
    normalize_identifier,
)

__all__ = [
    "ConsensusConfidence",
    "ConsensusResult",
    "ExtractionEngine",
    "ExtractionReport",
    "ExtractionSource",
    "LabelRecord",
    "MatchCandidate",
    "RemoteProvider",
    "normalize_identifier",
]
