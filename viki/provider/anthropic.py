"""Anthropic messages API adapter"""

from typing import AsyncIterator

import httpx

from viki.config.schema import ProviderKind

from .base import ChatResult, HTTPRequest, Message, Provider, RequestOptions, StreamEvent
from .streaming import decode_anthropic_sse

ANTHROPIC_VERSION = "2023-06-01"
DEFAULT_MAX_TOKENS = 4096


def split_system(messages: list[Message]) -> tuple[str, list[dict]]:
    """Pull system messages out into a single string.

    Anthropic has no inline system role. Several system messages are joined
    with a blank line; every other message keeps its relative order.
    """
    system_parts = []
    rest = []
    for msg in messages:
        if msg.role == "system":
            system_parts.append(msg.content)
        else:
            rest.append(msg.to_dict())
    return "\n\n".join(system_parts), rest


class AnthropicProvider(Provider):
    """Provider for Anthropic Claude models"""

    kind = ProviderKind.ANTHROPIC

    def build_request(
        self,
        messages: list[Message],
        options: RequestOptions,
        api_key: str,
        stream: bool = False,
    ) -> HTTPRequest:
        system, anthropic_messages = split_system(messages)

        # The API rejects requests without max_tokens
        body: dict = {
            "model": self.model,
            "messages": anthropic_messages,
            "max_tokens": options.max_tokens or DEFAULT_MAX_TOKENS,
        }
        if system:
            body["system"] = system
        if options.temperature is not None:
            body["temperature"] = options.temperature

        headers = {
            "Content-Type": "application/json",
            "x-api-key": api_key,
            "anthropic-version": ANTHROPIC_VERSION,
        }
        if stream:
            body["stream"] = True
            headers["Accept"] = "text/event-stream"

        return HTTPRequest(url=f"{self.base_url}/messages", body=body, headers=headers)

    def parse_response(self, body: bytes) -> ChatResult:
        data = self._load_json(body)
        content = data.get("content") or []
        if not content or not isinstance(content[0], dict) or "text" not in content[0]:
            raise self._missing("content[0].text")

        usage = data.get("usage") or {}
        return ChatResult(
            text=content[0]["text"] or "",
            finish_reason=data.get("stop_reason") or "stop",
            prompt_tokens=usage.get("input_tokens") or 0,
            completion_tokens=usage.get("output_tokens") or 0,
        )

    def decode_stream(self, response: httpx.Response) -> AsyncIterator[StreamEvent]:
        return decode_anthropic_sse(response.aiter_lines(), self.name)
