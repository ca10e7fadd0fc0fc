"""LLM client wrapper for an OpenAI-compatible chat completions endpoint."""

import os
import re
from pathlib import Path

import httpx
import structlog
import yaml

logger = structlog.get_logger(__name__)

_ENV_PATTERN = re.compile(r"\$\{env\.([^}]+)\}")

DEFAULT_PROVIDER = {
    "type": "openai",
    "base_url": "${env.OPENAI_BASE_URL:-https://api.openai.com}",
    "api_key": "${env.OPENAI_API_KEY:-}",
    "model": "${env.OPENAI_MODEL:-gpt-4o-mini}",
    "temperature": 0.7,
    "max_tokens": 500,
    "timeout": 30.0,
}


def resolve_env(value):
    """Expand ``${env.NAME:-default}`` references in a config string."""
    if not isinstance(value, str) or "${env." not in value:
        return value

    def _replace(match: re.Match) -> str:
        parts = match.group(1).split(":-", 1)
        default = parts[1] if len(parts) > 1 else ""
        return os.getenv(parts[0], default)

    return _ENV_PATTERN.sub(_replace, value)


class LLMClient:
    """Wrapper for the hosted chat-completion provider used by the chatbot.

    Configuration comes from a YAML file (``LLM_CONFIG_FILE``, default
    ``./llm.yaml``) whose first ``providers.inference`` entry is used;
    values may reference environment variables. Without an API key the
    client stays unconfigured and never issues a request.
    """

    def __init__(
        self,
        config_path: str | None = None,
        provider_config: dict | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize LLM client.

        Args:
            config_path: Path to llm.yaml configuration
                        (defaults to LLM_CONFIG_FILE env var)
            provider_config: Provider settings, bypassing the YAML file
            transport: Custom httpx transport (tests)
        """
        self.config_path = config_path or os.getenv("LLM_CONFIG_FILE", "./llm.yaml")
        self._load_config(provider_config)
        self._initialize_client(transport)

    def _load_config(self, provider_config: dict | None) -> None:
        """Load provider configuration from llm.yaml."""
        if provider_config is None:
            provider_config = self._read_config_file()

        config = {**DEFAULT_PROVIDER, **provider_config}
        self.provider_config = {key: resolve_env(value) for key, value in config.items()}

        self.provider_type = self.provider_config["type"]
        self.base_url = self.provider_config["base_url"]
        self.api_key = self.provider_config["api_key"] or None
        self.model = self.provider_config["model"]

        # Model parameters
        self.temperature = float(self.provider_config["temperature"])
        self.max_tokens = int(self.provider_config["max_tokens"])
        self.timeout = float(self.provider_config["timeout"])

    def _read_config_file(self) -> dict:
        path = Path(self.config_path)
        if not path.exists():
            logger.info("llm_config_file_missing", path=str(path))
            return {}

        with open(path) as f:
            config = yaml.safe_load(f) or {}

        inference_providers = config.get("providers", {}).get("inference", [])
        if not inference_providers:
            raise ValueError(f"No inference providers configured in {path}")

        # Use first inference provider
        return inference_providers[0]

    def _initialize_client(self, transport: httpx.AsyncBaseTransport | None) -> None:
        """Initialize HTTP client for LLM endpoint."""
        headers = {}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        self.http_client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=httpx.Timeout(self.timeout),
            transport=transport,
        )

    @property
    def is_configured(self) -> bool:
        """True when an API key is available."""
        return bool(self.api_key)

    async def generate(
        self,
        prompt: str,
        system_prompt: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> str:
        """Generate text from LLM.

        Args:
            prompt: User prompt
            system_prompt: System prompt (optional)
            temperature: Sampling temperature (optional, uses config default)
            max_tokens: Max tokens to generate (optional, uses config default)

        Returns:
            Generated text, stripped (empty string when the model returned none)

        Raises:
            RuntimeError: If no API key is configured
            httpx.HTTPError: On transport failure or non-2xx status
        """
        if not self.is_configured:
            raise RuntimeError("OpenAI client not initialized")

        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        request_data = {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature if temperature is None else temperature,
            "max_tokens": max_tokens or self.max_tokens,
        }

        response = await self.http_client.post(
            "/v1/chat/completions",
            json=request_data,
        )
        response.raise_for_status()

        choices = response.json().get("choices") or []
        if not choices:
            return ""
        content = (choices[0].get("message") or {}).get("content")
        return (content or "").strip()

    async def close(self) -> None:
        """Close HTTP client."""
        await self.http_client.aclose()


# Process-wide client (initialized in application startup)
_llm_client: LLMClient | None = None


def initialize_llm_client(config_path: str | None = None) -> LLMClient:
    """Create the process-wide LLM client."""
    global _llm_client
    _llm_client = LLMClient(config_path=config_path)
    if _llm_client.is_configured:
        logger.info("llm_client_initialized", model=_llm_client.model, provider=_llm_client.provider_type)
    else:
        logger.warning("llm_client_disabled", reason="OPENAI_API_KEY not set")
    return _llm_client


def get_llm_client() -> LLMClient | None:
    """FastAPI dependency returning the process-wide LLM client."""
    return _llm_client


async def shutdown_llm_client() -> None:
    """Close the process-wide LLM client."""
    global _llm_client
    if _llm_client is not None:
        await _llm_client.close()
        _llm_client = None
