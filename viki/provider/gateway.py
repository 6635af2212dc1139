"""Provider routing: one entry point for every vendor"""

import asyncio
import inspect
import logging
from typing import Any, AsyncIterator, Awaitable, Callable, Iterable, Mapping, Type

from viki.auth import CredentialResolver, CredentialStore
from viki.config import GatewaySettings, ProviderKind, ProviderProfile, ProviderStore
from viki.config import catalog
from viki.errors import ConfigError, TransportError, UnsupportedOperationError

from .anthropic import AnthropicProvider
from .base import ChatResult, Message, Provider, RequestOptions, StreamEvent, coerce_messages
from .google import GoogleProvider
from .ollama import OllamaProvider
from .openai import AzureOpenAIProvider, OpenAIProvider
from .transport import Transport

logger = logging.getLogger(__name__)

EventCallback = Callable[[StreamEvent], Awaitable[None] | None]
MessagesLike = Iterable[Message | Mapping[str, Any]]
OptionsLike = Mapping[str, Any] | RequestOptions | None

PROBE_MESSAGE = "Hello, this is a test message. Please respond with 'OK'."


class Gateway:
    """Routes chat requests to the adapter for a profile's kind.

    The gateway owns no global state: it holds a provider store, a
    credential resolver and one shared transport. Several gateways can
    coexist in one process.
    """

    # Map of provider kinds to adapter classes
    ADAPTERS: dict[ProviderKind, Type[Provider]] = {
        ProviderKind.OPENAI: OpenAIProvider,
        ProviderKind.AZURE: AzureOpenAIProvider,
        ProviderKind.ANTHROPIC: AnthropicProvider,
        ProviderKind.GOOGLE: GoogleProvider,
        ProviderKind.OLLAMA: OllamaProvider,
    }

    def __init__(
        self,
        store: ProviderStore,
        credentials: CredentialResolver | None = None,
        transport: Transport | None = None,
        adapters: Mapping[ProviderKind, Type[Provider]] | None = None,
    ):
        self.store = store
        self.credentials = credentials or CredentialResolver()
        self.transport = transport or Transport()
        self.adapters = dict(adapters or self.ADAPTERS)

    @classmethod
    def from_settings(cls, settings: GatewaySettings | None = None) -> "Gateway":
        settings = settings or GatewaySettings()
        return cls(
            store=ProviderStore.load(settings=settings),
            credentials=CredentialResolver(
                CredentialStore(settings.credentials_path()),
                prefix=settings.key_prefix,
            ),
            transport=Transport(timeout=settings.timeout),
        )

    def get_adapter(
        self,
        provider_name: str = "",
        operation: str = "chat",
        model: str | None = None,
    ) -> tuple[Provider, str]:
        """Resolve a provider name to a bound adapter and its API key"""
        profile = self.store.resolve(provider_name)
        if model:
            profile.model = model
        adapter_class = self.adapters.get(profile.kind)
        if adapter_class is None:
            raise ConfigError(f"no adapter registered for kind '{profile.kind.value}'", profile.name, operation)

        api_key = self.credentials.resolve(profile)
        if not api_key and catalog.requires_api_key(profile.kind):
            env_names = " or ".join(self.credentials.env_names(profile.name))
            raise ConfigError(
                f"no API key found; set {env_names} or store one under '{profile.api_key_ref}'",
                profile.name,
                operation,
            )
        return adapter_class(profile), api_key

    @staticmethod
    def _prepare(messages: MessagesLike, options: OptionsLike) -> tuple[list[Message], RequestOptions]:
        messages = coerce_messages(messages)
        if not messages:
            raise ValueError("messages must not be empty")
        return messages, RequestOptions.from_mapping(options)

    async def chat(
        self,
        provider_name: str,
        messages: MessagesLike,
        options: OptionsLike = None,
        timeout: float | None = None,
        model: str | None = None,
    ) -> ChatResult:
        """Send a chat request and return the full response"""
        messages, request_options = self._prepare(messages, options)
        adapter, api_key = self.get_adapter(provider_name, "chat", model)
        request = adapter.build_request(messages, request_options, api_key)

        logger.info(f"Chat via {adapter.name} ({adapter.kind.value}, model={adapter.model})")
        logger.debug(f"Messages count: {len(messages)}")
        try:
            async with asyncio.timeout(timeout):
                body = await self.transport.post(request, adapter.name)
        except TimeoutError as e:
            raise TransportError("deadline exceeded", adapter.name, "chat", cancelled=True) from e
        return adapter.parse_response(body)

    async def stream(
        self,
        provider_name: str,
        messages: MessagesLike,
        options: OptionsLike = None,
        model: str | None = None,
    ) -> AsyncIterator[StreamEvent]:
        """Yield stream events in arrival order; the last one is final"""
        messages, request_options = self._prepare(messages, options)
        adapter, api_key = self.get_adapter(provider_name, "chat_stream", model)
        if not adapter.supports_streaming:
            raise UnsupportedOperationError(
                f"streaming is not supported for {catalog.display_name(adapter.kind)}",
                adapter.name,
                "chat_stream",
            )
        request = adapter.build_request(messages, request_options, api_key, stream=True)

        logger.info(f"Streaming via {adapter.name} ({adapter.kind.value}, model={adapter.model})")
        logger.debug(f"Messages count: {len(messages)}")
        async with self.transport.open_stream(request, adapter.name) as response:
            events = adapter.decode_stream(response)
            try:
                async for event in events:
                    yield event
                    if event.is_final:
                        break
            finally:
                await events.aclose()

    async def chat_stream(
        self,
        provider_name: str,
        messages: MessagesLike,
        options: OptionsLike,
        on_event: EventCallback,
        timeout: float | None = None,
        model: str | None = None,
    ) -> None:
        """Stream a response, calling ``on_event`` once per event in order.

        Events already delivered stay valid if an error is raised later.
        """
        events = self.stream(provider_name, messages, options, model)
        try:
            async with asyncio.timeout(timeout):
                async for event in events:
                    result = on_event(event)
                    if inspect.isawaitable(result):
                        await result
        except TimeoutError as e:
            raise TransportError("deadline exceeded", provider_name, "chat_stream", cancelled=True) from e
        finally:
            await events.aclose()

    async def validate(self, provider_name: str = "") -> ChatResult:
        """Send a tiny probe request to check the key and endpoint"""
        return await self.chat(
            provider_name,
            [Message(role="user", content=PROBE_MESSAGE)],
            RequestOptions(temperature=0.1, max_tokens=10),
        )

    def list_providers(self) -> list[ProviderProfile]:
        return self.store.list_providers()

    async def aclose(self):
        await self.transport.aclose()

    async def __aenter__(self) -> "Gateway":
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()
