from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

from openai import OpenAI, OpenAIError

from gasmeter.config import Settings
from gasmeter.errors import InferenceFailed
from gasmeter.media.models import MediaReference

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$")


@dataclass(frozen=True)
class SamplingConfig:
    """
    Sampling policy shared by the extraction and resolution calls.
    Low temperature and top-k keep digit reads close to deterministic.
    """

    temperature: float = 0.1
    top_k: Optional[int] = 10
    max_output_tokens: Optional[int] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "SamplingConfig":
        return cls(temperature=settings.temperature, top_k=settings.top_k)


class InferenceGateway(Protocol):
    def generate_structured(
        self,
        media: MediaReference,
        system_prompt: str,
        prompt: str,
        schema: Dict[str, Any],
        sampling: SamplingConfig,
        timeout: Optional[float] = None,
    ) -> Dict[str, Any]:
        ...

    def generate_text(
        self,
        prompt: str,
        sampling: SamplingConfig,
        timeout: Optional[float] = None,
    ) -> str:
        ...


class OpenAIGateway:
    """
    Inference gateway backed by the chat completions API of any
    OpenAI-compatible provider (OpenAI, Gemini's compatibility endpoint,
    llama.cpp, vLLM).
    """

    def __init__(
        self,
        model: str,
        api_key: str = "",
        base_url: Optional[str] = None,
        request_timeout: float = 60.0,
        client: Optional[OpenAI] = None,
    ) -> None:
        self.model = model
        self._api_key = api_key
        self._base_url = base_url
        self._request_timeout = request_timeout
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "OpenAIGateway":
        return cls(
            model=settings.model,
            api_key=settings.openai_api_key,
            base_url=settings.openai_base_url,
            request_timeout=settings.request_timeout,
        )

    def _get_client(self) -> OpenAI:
        """
        Lazily initialize the OpenAI client so that constructing the gateway
        does not explode if the key is missing (e.g. during local tests).
        """
        if self._client is None:
            if not self._api_key:
                logger.error("OPENAI_API_KEY is not set; inference is unavailable.")
                raise InferenceFailed("OPENAI_API_KEY is not set")
            self._client = OpenAI(
                api_key=self._api_key,
                base_url=self._base_url,
                timeout=self._request_timeout,
            )
        return self._client

    def _sampling_kwargs(self, sampling: SamplingConfig, timeout: Optional[float]) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {"temperature": sampling.temperature}
        if sampling.top_k is not None:
            # top_k is not part of the OpenAI schema; compatible providers read it from the body.
            kwargs["extra_body"] = {"top_k": sampling.top_k}
        if sampling.max_output_tokens is not None:
            kwargs["max_tokens"] = sampling.max_output_tokens
        if timeout is not None:
            kwargs["timeout"] = timeout
        return kwargs

    def generate_structured(
        self,
        media: MediaReference,
        system_prompt: str,
        prompt: str,
        schema: Dict[str, Any],
        sampling: SamplingConfig,
        timeout: Optional[float] = None,
    ) -> Dict[str, Any]:
        client = self._get_client()
        response_schema = {k: v for k, v in schema.items() if k not in ("$schema", "title")}

        try:
            response = client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {
                        "role": "user",
                        "content": [
                            {"type": "image_url", "image_url": {"url": media.uri}},
                            {"type": "text", "text": prompt},
                        ],
                    },
                ],
                response_format={
                    "type": "json_schema",
                    "json_schema": {
                        "name": schema.get("title", "result"),
                        "schema": response_schema,
                    },
                },
                **self._sampling_kwargs(sampling, timeout),
            )
        except OpenAIError as e:
            raise InferenceFailed(f"failed to analyze image: {e}") from e

        content = _first_message_text(response)
        if not content:
            raise InferenceFailed("failed to analyze image: empty response")

        try:
            parsed = json.loads(_FENCE_RE.sub("", content.strip()))
        except json.JSONDecodeError as e:
            raise InferenceFailed(f"failed to analyze image: invalid JSON {content!r}") from e
        if not isinstance(parsed, dict):
            raise InferenceFailed(f"failed to analyze image: expected an object, got {content!r}")
        return parsed

    def generate_text(
        self,
        prompt: str,
        sampling: SamplingConfig,
        timeout: Optional[float] = None,
    ) -> str:
        client = self._get_client()

        try:
            response = client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                **self._sampling_kwargs(sampling, timeout),
            )
        except OpenAIError as e:
            raise InferenceFailed(f"failed to generate: {e}", stage="resolving") from e

        return _first_message_text(response) or ""


def _first_message_text(response: Any) -> Optional[str]:
    choices = getattr(response, "choices", None) or []
    if not choices:
        return None
    message = getattr(choices[0], "message", None)
    if message is None:
        return None
    return message.content
