"""OpenAI-compatible chat completions adapter (OpenAI and Azure OpenAI)"""

from typing import AsyncIterator

import httpx

from viki.config.schema import ProviderKind

from .base import ChatResult, HTTPRequest, Message, Provider, RequestOptions, StreamEvent
from .streaming import decode_openai_sse


class OpenAIProvider(Provider):
    """Provider for OpenAI-style /chat/completions endpoints"""

    kind = ProviderKind.OPENAI

    def build_request(
        self,
        messages: list[Message],
        options: RequestOptions,
        api_key: str,
        stream: bool = False,
    ) -> HTTPRequest:
        # System messages stay inline
        body: dict = {
            "model": self.model,
            "messages": [m.to_dict() for m in messages],
        }
        if options.temperature is not None:
            body["temperature"] = options.temperature
        if options.max_tokens is not None:
            body["max_tokens"] = options.max_tokens

        headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }
        if stream:
            body["stream"] = True
            headers["Accept"] = "text/event-stream"

        return HTTPRequest(url=f"{self.base_url}/chat/completions", body=body, headers=headers)

    def parse_response(self, body: bytes) -> ChatResult:
        data = self._load_json(body)
        choices = data.get("choices") or []
        if not choices or not isinstance(choices[0], dict):
            raise self._missing("choices[0]")
        message = choices[0].get("message")
        if not isinstance(message, dict):
            raise self._missing("choices[0].message")

        usage = data.get("usage") or {}
        return ChatResult(
            text=message.get("content") or "",
            finish_reason=choices[0].get("finish_reason") or "",
            prompt_tokens=usage.get("prompt_tokens") or 0,
            completion_tokens=usage.get("completion_tokens") or 0,
        )

    def decode_stream(self, response: httpx.Response) -> AsyncIterator[StreamEvent]:
        return decode_openai_sse(response.aiter_lines())


class AzureOpenAIProvider(OpenAIProvider):
    """Azure OpenAI speaks the same protocol at a deployment-specific URL"""

    kind = ProviderKind.AZURE
