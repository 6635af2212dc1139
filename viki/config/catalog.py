"""Static facts about each provider kind"""

from .schema import ProviderKind

DEFAULT_BASE_URLS = {
    ProviderKind.OPENAI: "https://api.openai.com/v1",
    ProviderKind.ANTHROPIC: "https://api.anthropic.com/v1",
    ProviderKind.GOOGLE: "https://generativelanguage.googleapis.com/v1beta",
    ProviderKind.OLLAMA: "http://localhost:11434",
    # Azure deployments have no shared endpoint
    ProviderKind.AZURE: "",
}

DISPLAY_NAMES = {
    ProviderKind.OPENAI: "OpenAI",
    ProviderKind.ANTHROPIC: "Anthropic",
    ProviderKind.GOOGLE: "Google Gemini",
    ProviderKind.OLLAMA: "Ollama (Local)",
    ProviderKind.AZURE: "Azure OpenAI",
}

DEFAULT_MODELS = {
    ProviderKind.OPENAI: "gpt-4",
    ProviderKind.ANTHROPIC: "claude-3-sonnet-20240229",
    ProviderKind.GOOGLE: "gemini-pro",
    ProviderKind.OLLAMA: "llama2",
    ProviderKind.AZURE: "gpt-4",
}

KNOWN_MODELS = {
    ProviderKind.OPENAI: ["gpt-4", "gpt-4-turbo", "gpt-4-turbo-preview", "gpt-3.5-turbo", "gpt-3.5-turbo-16k"],
    ProviderKind.ANTHROPIC: [
        "claude-3-opus-20240229",
        "claude-3-sonnet-20240229",
        "claude-3-haiku-20240307",
        "claude-2.1",
        "claude-2",
    ],
    ProviderKind.GOOGLE: ["gemini-pro", "gemini-pro-vision", "gemini-1.5-pro-latest"],
    ProviderKind.OLLAMA: ["llama2", "codellama", "mistral", "vicuna"],
    ProviderKind.AZURE: ["gpt-4", "gpt-4-turbo", "gpt-4-turbo-preview", "gpt-3.5-turbo", "gpt-3.5-turbo-16k"],
}


def default_base_url(kind: ProviderKind) -> str:
    return DEFAULT_BASE_URLS[ProviderKind(kind)]


def display_name(kind: ProviderKind | str) -> str:
    try:
        return DISPLAY_NAMES[ProviderKind(kind)]
    except ValueError:
        return str(kind)


def default_model(kind: ProviderKind) -> str:
    return DEFAULT_MODELS[ProviderKind(kind)]


def known_models(kind: ProviderKind) -> list[str]:
    return list(KNOWN_MODELS[ProviderKind(kind)])


def requires_api_key(kind: ProviderKind) -> bool:
    return ProviderKind(kind) is not ProviderKind.OLLAMA
