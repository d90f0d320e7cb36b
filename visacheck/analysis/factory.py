from typing import ClassVar

from visacheck.analysis.analyzer import Analyzer
from visacheck.analysis.example_client_adapter import ExampleClientAdapter
from visacheck.analysis.openai_client_adapter import OpenAIClientAdapter
from visacheck.config.exceptions import ConfigurationError
from visacheck.config.settings import Settings


class AnalyzerFactory:
    """Creates the configured analyzer.

    Credentials are checked here, at start-up, so a misconfigured provider
    never reaches request handling.
    """

    OPENAI_COMPATIBLE_BASE_URLS: ClassVar[dict[str, str]] = {
        "openrouter": "https://openrouter.ai/api/v1",
        "groq": "https://api.groq.com/openai/v1",
        "together": "https://api.together.xyz/v1",
        "deepseek": "https://api.deepseek.com/v1",
        "ollama": "http://localhost:11434/v1",
    }

    KEYLESS_PROVIDERS: ClassVar[frozenset[str]] = frozenset({"ollama"})

    @classmethod
    def create(cls, settings: Settings) -> Analyzer:
        """Create a configured analyzer from application settings."""
        provider = settings.analysis_provider.lower()
        if provider == "example":
            return Analyzer(client=ExampleClientAdapter(), model="example", temperature=0.0)

        base_url = cls._resolve_base_url(provider, settings)
        client = OpenAIClientAdapter(
            api_key=cls._resolve_api_key(provider, settings),
            timeout_seconds=settings.openai_timeout_seconds,
            base_url=base_url,
        )
        model = settings.openai_model_name.strip()
        if not model:
            raise ConfigurationError("openai_model_name must be set")
        return Analyzer(
            client=client,
            model=model,
            temperature=settings.openai_temperature,
            max_tokens=settings.openai_max_tokens,
        )

    @classmethod
    def _resolve_base_url(cls, provider: str, settings: Settings) -> str | None:
        if provider == "openai":
            return settings.openai_base_url.strip() or None
        if provider == "openai_compatible":
            url = settings.openai_base_url.strip()
            if not url:
                raise ConfigurationError(
                    "openai_base_url is required for analysis_provider=openai_compatible"
                )
            return url
        default_base_url = cls.OPENAI_COMPATIBLE_BASE_URLS.get(provider)
        if default_base_url is not None:
            return settings.openai_base_url.strip() or default_base_url
        supported = [
            "example",
            "openai",
            "openai_compatible",
            *sorted(cls.OPENAI_COMPATIBLE_BASE_URLS),
        ]
        raise ConfigurationError(
            f"Unknown analysis provider '{provider}'. Choose from: {supported}"
        )

    @classmethod
    def _resolve_api_key(cls, provider: str, settings: Settings) -> str:
        key = settings.openai_api_key.strip()
        if key:
            return key
        if provider in cls.KEYLESS_PROVIDERS:
            # the SDK refuses an empty key even when the server ignores it
            return "unused"
        raise ConfigurationError(f"An API key is required for analysis_provider={provider}")
