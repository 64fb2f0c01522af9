import logging
from typing import Optional

import httpx
import openai
from openai import AsyncOpenAI

from skulabels.config import Settings
from skulabels.models.domain import RemoteProvider
from skulabels.services.base_backend import RemoteExtractionBackend
from skulabels.services.errors import (
    BackendTimeoutError,
    BackendUnavailableError,
    ConfigurationError,
    MalformedResponseError,
    RateLimitedError,
    classify_http_status,
)

logger = logging.getLogger(__name__)

GEMINI_RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "records": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "identifier": {"type": "STRING", "description": "SKU printed on the label"},
                    "scan_payload": {"type": "STRING", "description": "Barcode encoded in the scannable code"},
                    "count": {"type": "INTEGER", "description": "Occurrences of the SKU"},
                },
                "required": ["identifier", "scan_payload", "count"],
            },
        }
    },
    "required": ["records"],
}


class OpenAIBackend(RemoteExtractionBackend):
    name = RemoteProvider.OPENAI.value
    default_model = "gpt-4o-mini"
    api_base = "https://api.openai.com/v1"
    reports_confidence = True

    def _build_messages(self, system_prompt: str, user_prompt: str) -> list[dict]:
        return [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ]

    async def _request_completion(self, system_prompt: str, user_prompt: str) -> str:
        request_kwargs = {
            "model": self.model,
            "messages": self._build_messages(system_prompt, user_prompt),
            "response_format": {"type": "json_object"},
        }
        if self.temperature is not None:
            request_kwargs["temperature"] = self.temperature

        async with self._http_client() as http_client:
            client = AsyncOpenAI(
                api_key=self._get_api_key(),
                base_url=self.api_base,
                timeout=self.timeout,
                max_retries=0,
                http_client=http_client,
            )
            try:
                response = await client.chat.completions.create(**request_kwargs)
            except openai.RateLimitError as e:
                raise RateLimitedError(str(e), status_code=429) from e
            except openai.APITimeoutError as e:
                raise BackendTimeoutError(str(e)) from e
            except openai.APIConnectionError as e:
                raise BackendUnavailableError(str(e)) from e
            except openai.APIStatusError as e:
                logger.error(f"{self.name} API error: {e}")
                raise classify_http_status(e.status_code, str(e)) from e

        if not response.choices:
            raise MalformedResponseError(f"{self.name} returned no choices")
        return response.choices[0].message.content or ""


class GeminiBackend(RemoteExtractionBackend):
    name = RemoteProvider.GEMINI.value
    default_model = "gemini-3-flash-preview"
    api_base = "https://generativelanguage.googleapis.com/v1beta"

    def _build_headers(self, api_key: str) -> dict:
        return {
            "x-goog-api-key": api_key,
            "Content-Type": "application/json",
        }

    def _build_payload(self, system_prompt: str, user_prompt: str) -> dict:
        generation_config = {
            "responseMimeType": "application/json",
            "responseSchema": GEMINI_RESPONSE_SCHEMA,
        }
        if self.temperature is not None:
            generation_config["temperature"] = self.temperature
        return {
            "systemInstruction": {"parts": [{"text": system_prompt}]},
            "contents": [{"role": "user", "parts": [{"text": user_prompt}]}],
            "generationConfig": generation_config,
        }

    async def _request_completion(self, system_prompt: str, user_prompt: str) -> str:
        url = f"{self.api_base}/models/{self.model}:generateContent"
        payload = self._build_payload(system_prompt, user_prompt)
        headers = self._build_headers(self._get_api_key())

        async with self._http_client() as client:
            try:
                response = await client.post(url, json=payload, headers=headers)
            except httpx.TimeoutException as e:
                raise BackendTimeoutError(f"{self.name} request timed out: {e}") from e
            except httpx.TransportError as e:
                raise BackendUnavailableError(f"{self.name} transport error: {e}") from e

        if response.status_code != 200:
            logger.error(f"{self.name} API error: HTTP {response.status_code}")
            raise classify_http_status(response.status_code, response.text)

        return self._parse_response(response)

    def _parse_response(self, response: httpx.Response) -> str:
        try:
            result = response.json()
            return result["candidates"][0]["content"]["parts"][0]["text"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise MalformedResponseError(f"{self.name} response has no candidate text") from e


def build_remote_backend(
    config: Settings,
    provider: Optional[RemoteProvider] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> RemoteExtractionBackend:
    try:
        selected = provider or RemoteProvider(config.remote_provider.lower())
    except ValueError as e:
        raise ConfigurationError(f"Unknown remote provider: {config.remote_provider}") from e

    if selected == RemoteProvider.OPENAI:
        if not config.openai_api_key:
            raise ConfigurationError("OPENAI_API_KEY is not set")
        return OpenAIBackend(
            api_key=config.openai_api_key,
            model_name=config.openai_model,
            api_base=config.openai_api_base,
            timeout=config.request_timeout,
            min_confidence=config.min_record_confidence,
            transport=transport,
        )
    if selected == RemoteProvider.GEMINI:
        if not config.gemini_api_key:
            raise ConfigurationError("GEMINI_API_KEY is not set")
        return GeminiBackend(
            api_key=config.gemini_api_key,
            model_name=config.gemini_model,
            api_base=config.gemini_api_base,
            timeout=config.request_timeout,
            min_confidence=config.min_record_confidence,
            transport=transport,
        )
    raise ConfigurationError(f"No remote backend for provider: {selected}")
