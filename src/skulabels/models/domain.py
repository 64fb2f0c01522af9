import enum
from dataclasses import dataclass, field
from typing import Optional


class RemoteProvider(str, enum.Enum):
    OPENAI = "openai"
    GEMINI = "gemini"


class ExtractionEngine(str, enum.Enum):
    AUTO = "auto"
    LOCAL = "local"
    REMOTE = "remote"


class ExtractionSource(str, enum.Enum):
    DETERMINISTIC = "deterministic"
    REMOTE = "remote"
    NONE = "none"


class ConsensusConfidence(str, enum.Enum):
    MAJORITY = "majority"
    NO_CONSENSUS = "no_consensus"
    EMPTY = "empty"


def normalize_identifier(value: str) -> str:
    return value.strip().upper()


@dataclass(frozen=True)
class LabelRecord:
    """One distinct product that appears ``count`` times in a document."""

    identifier: str
    scan_payload: str
    count: int = 1

    def __post_init__(self) -> None:
        if not self.identifier or not self.identifier.strip():
            raise ValueError("identifier must be non-empty")
        if not self.scan_payload:
            raise ValueError("scan_payload must be non-empty")
        if self.count < 1:
            raise ValueError(f"count must be >= 1, got {self.count}")
        object.__setattr__(self, "identifier", normalize_identifier(self.identifier))

    def signature_key(self) -> str:
        return f"{self.identifier}|{self.scan_payload}|{self.count}"


@dataclass(frozen=True)
class MatchCandidate:
    value: str
    offset: int


@dataclass(frozen=True)
class ConsensusResult:
    records: list[LabelRecord] = field(default_factory=list)
    confidence: ConsensusConfidence = ConsensusConfidence.EMPTY
    votes: int = 0
    samples: int = 0
    failures: list[str] = field(default_factory=list)

    @classmethod
    def empty(cls, samples: int = 0, failures: Optional[list[str]] = None) -> "ConsensusResult":
        return cls(samples=samples, failures=list(failures or []))


@dataclass(frozen=True)
class ExtractionReport:
    records: list[LabelRecord] = field(default_factory=list)
    source: ExtractionSource = ExtractionSource.NONE
    consensus: Optional[ConsensusResult] = None

    @property
    def is_empty(self) -> bool:
        return not self.records

    @property
    def total_labels(self) -> int:
        return sum(record.count for record in self.records)
