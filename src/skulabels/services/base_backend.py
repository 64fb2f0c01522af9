import logging
from abc import ABC, abstractmethod
from typing import Optional

import httpx
from pydantic import ValidationError

from skulabels.models.domain import LabelRecord, normalize_identifier
from skulabels.models.schemas import RemoteExtractionPayload
from skulabels.prompts import render_label_prompts
from skulabels.services.errors import ConfigurationError, MalformedResponseError
from skulabels.services.field_matcher import match_label_records

logger = logging.getLogger(__name__)

DEFAULT_MIN_CONFIDENCE = 95


class ExtractionBackend(ABC):
    """Turns document text into label records.

    Implementations must not mutate shared state: the consensus reconciler
    calls the same backend several times concurrently on identical input.
    """

    name: str
    deterministic: bool = False

    @abstractmethod
    async def extract(self, text: str) -> list[LabelRecord]:
        pass


class DeterministicBackend(ExtractionBackend):
    name = "pattern"
    deterministic = True

    def match(self, text: str) -> list[LabelRecord]:
        return match_label_records(text)

    async def extract(self, text: str) -> list[LabelRecord]:
        return self.match(text)


class RemoteExtractionBackend(ExtractionBackend):
    """Base class for LLM backends answering with the ``records`` JSON shape."""

    name: str
    default_model: str
    api_base: str
    reports_confidence: bool = False
    temperature: Optional[float] = 0.2

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_name: Optional[str] = None,
        api_base: Optional[str] = None,
        timeout: float = 120.0,
        min_confidence: int = DEFAULT_MIN_CONFIDENCE,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._api_key = api_key
        self.model = model_name or self.default_model
        if api_base:
            self.api_base = api_base
        self.timeout = timeout
        self.min_confidence = min_confidence
        self._transport = transport

    def _get_api_key(self) -> str:
        if self._api_key:
            return self._api_key
        raise ConfigurationError(f"No {self.name} API key configured")

    def _http_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    @abstractmethod
    async def _request_completion(self, system_prompt: str, user_prompt: str) -> str:
        """Send one request and return the raw JSON text of the answer."""

    async def extract(self, text: str) -> list[LabelRecord]:
        system_prompt, user_prompt = render_label_prompts(text, include_confidence=self.reports_confidence)
        raw = await self._request_completion(system_prompt, user_prompt)
        records = self.parse_records(raw)
        logger.debug(f"{self.name} returned {len(records)} records")
        return records

    def parse_records(self, raw: Optional[str]) -> list[LabelRecord]:
        """Validate a response body; one bad record rejects the whole answer."""
        if not raw or not raw.strip():
            raise MalformedResponseError(f"{self.name} returned an empty body")

        try:
            payload = RemoteExtractionPayload.model_validate_json(raw)
        except ValidationError as e:
            raise MalformedResponseError(f"{self.name} response does not match the records schema: {e}") from e

        records: list[LabelRecord] = []
        seen: set[str] = set()
        for item in payload.records:
            identifier = normalize_identifier(item.identifier)
            scan_payload = item.scan_payload.strip()
            if not identifier or not scan_payload:
                raise MalformedResponseError(f"{self.name} returned a record with a blank field")
            if identifier in seen:
                raise MalformedResponseError(f"{self.name} returned SKU {identifier} more than once")
            if self.reports_confidence and item.confidence is None:
                raise MalformedResponseError(f"{self.name} omitted confidence for SKU {identifier}")
            if item.confidence is not None and item.confidence < self.min_confidence:
                raise MalformedResponseError(
                    f"{self.name} confidence {item.confidence} for SKU {identifier} "
                    f"is below {self.min_confidence}"
                )
            seen.add(identifier)
            records.append(LabelRecord(identifier=identifier, scan_payload=scan_payload, count=item.count))
        return records
