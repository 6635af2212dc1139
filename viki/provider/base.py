"""Provider abstraction for LLM APIs"""

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Iterable, Literal, Mapping

import httpx

from viki.config import catalog
from viki.config.schema import ProviderKind, ProviderProfile
from viki.errors import ConfigError, DecodeError, UnsupportedOperationError

ROLES = ("system", "user", "assistant", "tool")


@dataclass
class Message:
    """A chat message; list order is preserved end to end"""
    role: Literal["system", "user", "assistant", "tool"]
    content: str

    def __post_init__(self):
        if self.role not in ROLES:
            raise ValueError(f"invalid message role: {self.role!r}")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Message":
        return cls(role=data["role"], content=data.get("content") or "")

    def to_dict(self) -> dict:
        return {"role": self.role, "content": self.content}


def coerce_messages(messages: Iterable["Message | Mapping[str, Any]"]) -> list[Message]:
    return [m if isinstance(m, Message) else Message.from_dict(m) for m in messages]


@dataclass
class RequestOptions:
    """Knobs a caller may set; each adapter reads only what its vendor supports"""
    temperature: float | None = None
    max_tokens: int | None = None

    @classmethod
    def from_mapping(cls, options: "Mapping[str, Any] | RequestOptions | None") -> "RequestOptions":
        if options is None:
            return cls()
        if isinstance(options, RequestOptions):
            return options

        temperature = options.get("temperature")
        max_tokens = options.get("maxTokens", options.get("max_tokens"))
        # Unknown keys and wrongly typed values are ignored
        if isinstance(temperature, bool) or not isinstance(temperature, (int, float)):
            temperature = None
        if isinstance(max_tokens, bool) or not isinstance(max_tokens, int):
            max_tokens = None
        return cls(
            temperature=float(temperature) if temperature is not None else None,
            max_tokens=max_tokens,
        )


@dataclass
class ChatResult:
    """Normalized non-streaming response (first candidate only)"""
    text: str
    finish_reason: str = ""
    prompt_tokens: int = 0
    completion_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens


@dataclass
class StreamEvent:
    """One increment of streamed text; exactly one event per stream is final"""
    text: str
    is_final: bool = False


@dataclass
class HTTPRequest:
    """Everything the transport needs to issue a POST"""
    url: str
    body: dict
    headers: dict[str, str] = field(default_factory=dict)
    params: dict[str, str] = field(default_factory=dict)


class Provider(ABC):
    """Base class for vendor adapters.

    An adapter is bound to one profile. It turns messages into an
    ``HTTPRequest``, a response body into a ``ChatResult``, and a live
    streaming response into ``StreamEvent``s.
    """

    kind: ProviderKind
    supports_streaming = True

    def __init__(self, profile: ProviderProfile):
        self.profile = profile
        self.model = profile.model
        base_url = profile.base_url or catalog.default_base_url(profile.kind)
        if not base_url:
            raise ConfigError(
                f"a base URL is required for {catalog.display_name(profile.kind)}",
                provider=profile.name,
                operation="configure",
            )
        self.base_url = base_url.rstrip("/")

    @property
    def name(self) -> str:
        return self.profile.name

    @abstractmethod
    def build_request(
        self,
        messages: list[Message],
        options: RequestOptions,
        api_key: str,
        stream: bool = False,
    ) -> HTTPRequest:
        """Translate a unified request into this vendor's wire format"""
        pass

    @abstractmethod
    def parse_response(self, body: bytes) -> ChatResult:
        """Translate a complete response body into a ChatResult"""
        pass

    def decode_stream(self, response: httpx.Response) -> AsyncIterator[StreamEvent]:
        """Yield events from a streaming response, ending with one final event"""
        raise UnsupportedOperationError(
            f"streaming is not supported for {catalog.display_name(self.kind)}",
            self.name,
            "chat_stream",
        )

    def _load_json(self, body: bytes) -> dict:
        try:
            data = json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise DecodeError(f"failed to decode response: {e}", self.name, "chat") from e
        if not isinstance(data, dict):
            raise DecodeError("response is not a JSON object", self.name, "chat")
        return data

    def _missing(self, path: str) -> DecodeError:
        return DecodeError(f"response has no {path}", self.name, "chat")
