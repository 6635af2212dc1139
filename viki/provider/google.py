"""Google Gemini generateContent adapter"""

from typing import AsyncIterator
from urllib.parse import urlparse

import httpx

from viki.config.schema import ProviderKind

from .base import ChatResult, HTTPRequest, Message, Provider, RequestOptions, StreamEvent
from .streaming import candidate_text, decode_json_array, first_candidate

GOOGLE_API_HOST = "generativelanguage.googleapis.com"


class GoogleProvider(Provider):
    """Provider for Gemini models.

    Only the most recent message is sent and temperature/max_tokens are not
    forwarded. Earlier turns never reach the model.
    """

    kind = ProviderKind.GOOGLE

    def build_request(
        self,
        messages: list[Message],
        options: RequestOptions,
        api_key: str,
        stream: bool = False,
    ) -> HTTPRequest:
        if not messages:
            raise ValueError("messages must not be empty")

        # TODO: send the full history as contents[] with user/model roles once
        # callers agree on how system messages map to systemInstruction
        body = {
            "contents": [
                {"parts": [{"text": messages[-1].content}]},
            ],
        }

        method = "streamGenerateContent" if stream else "generateContent"
        headers = {"Content-Type": "application/json"}
        params = {}
        if urlparse(self.base_url).hostname == GOOGLE_API_HOST:
            headers["x-goog-api-key"] = api_key
        else:
            params["key"] = api_key

        return HTTPRequest(
            url=f"{self.base_url}/models/{self.model}:{method}",
            body=body,
            headers=headers,
            params=params,
        )

    def parse_response(self, body: bytes) -> ChatResult:
        data = self._load_json(body)
        candidate = first_candidate(data)
        usage = data.get("usageMetadata") or {}
        return ChatResult(
            text=candidate_text(candidate),
            finish_reason=candidate.get("finishReason") or "stop",
            prompt_tokens=usage.get("promptTokenCount") or 0,
            completion_tokens=usage.get("candidatesTokenCount") or 0,
        )

    def decode_stream(self, response: httpx.Response) -> AsyncIterator[StreamEvent]:
        return decode_json_array(response.aiter_text(), self.name)
