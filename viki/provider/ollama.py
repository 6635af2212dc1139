"""Adapter for locally-running Ollama instances"""

from typing import AsyncIterator

import httpx

from viki.config.schema import ProviderKind

from .base import ChatResult, HTTPRequest, Message, Provider, RequestOptions, StreamEvent
from .streaming import decode_ndjson


class OllamaProvider(Provider):
    """Provider for the native /api/chat endpoint (no authentication)"""

    kind = ProviderKind.OLLAMA

    def build_request(
        self,
        messages: list[Message],
        options: RequestOptions,
        api_key: str,
        stream: bool = False,
    ) -> HTTPRequest:
        body: dict = {
            "model": self.model,
            "messages": [m.to_dict() for m in messages],
            "stream": stream,
        }
        model_options = {}
        if options.temperature is not None:
            model_options["temperature"] = options.temperature
        if options.max_tokens is not None:
            model_options["num_predict"] = options.max_tokens
        if model_options:
            body["options"] = model_options

        return HTTPRequest(
            url=f"{self.base_url}/api/chat",
            body=body,
            headers={"Content-Type": "application/json"},
        )

    def parse_response(self, body: bytes) -> ChatResult:
        data = self._load_json(body)
        message = data.get("message")
        if not isinstance(message, dict):
            raise self._missing("message.content")

        return ChatResult(
            text=message.get("content") or "",
            finish_reason=data.get("done_reason") or ("stop" if data.get("done") else ""),
            prompt_tokens=data.get("prompt_eval_count") or 0,
            completion_tokens=data.get("eval_count") or 0,
        )

    def decode_stream(self, response: httpx.Response) -> AsyncIterator[StreamEvent]:
        return decode_ndjson(response.aiter_lines(), self.name)
