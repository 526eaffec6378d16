"""HTTP adapters for the supported LLM vendors and local backends."""

from __future__ import annotations

import logging
import uuid
from abc import abstractmethod
from time import perf_counter
from typing import TYPE_CHECKING, Any, ClassVar

import httpx

from venture_agent.errors import ProviderRequestFailedError, ProviderUnavailableError
from venture_agent.llm.base import ProviderAdapter, estimate_tokens
from venture_agent.types import (
    FinishReason,
    GenerationRequest,
    GenerationResponse,
    TokenUsage,
)

if TYPE_CHECKING:
    from venture_agent.config import Settings

logger = logging.getLogger(__name__)

_FINISH_REASONS: dict[str, FinishReason] = {
    "stop": "stop",
    "end_turn": "stop",
    "stop_sequence": "stop",
    "complete": "stop",
    "eos_token": "stop",
    "length": "length",
    "max_tokens": "length",
    "content_filter": "content_filter",
    "error_toxic": "content_filter",
}


class HttpProviderAdapter(ProviderAdapter):
    """Shared request/parse loop for JSON-over-HTTP vendors.

    Subclasses supply the endpoint, headers, payload and a parser that maps
    the vendor reply to `(content, usage, finish_reason)`. Any parsing error
    surfaces as `ProviderRequestFailedError`.
    """

    default_base_url: ClassVar[str] = ""

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        api_key: str = "",
        base_url: str | None = None,
    ) -> None:
        self._client = client
        self._api_key = api_key
        self.base_url = (base_url or self.default_base_url).rstrip("/")

    async def is_available(self) -> bool:
        return bool(self._api_key)

    async def generate(self, request: GenerationRequest) -> GenerationResponse:
        if self.requires_key and not self._api_key:
            raise ProviderUnavailableError(self.id, "API key not configured")

        start = perf_counter()
        data = await self._post_json(
            self._endpoint(request), self._payload(request), self._headers()
        )
        try:
            content, usage, finish_reason = self._parse(data, request)
        except (AttributeError, KeyError, IndexError, TypeError, ValueError) as exc:
            raise ProviderRequestFailedError(self.id, f"malformed response: {exc!r}") from exc
        if not isinstance(content, str) or not content.strip():
            raise ProviderRequestFailedError(self.id, "empty completion")

        response_id = data.get("id") if isinstance(data, dict) else None
        return GenerationResponse(
            id=str(response_id or f"{self.id}_{uuid.uuid4().hex[:12]}"),
            content=content,
            model=request.model,
            usage=usage,
            finish_reason=finish_reason,
            processing_time_ms=(perf_counter() - start) * 1000.0,
            provider=self.id,
        )

    @abstractmethod
    def _endpoint(self, request: GenerationRequest) -> str:
        """Return the completion URL for this request."""

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

    @abstractmethod
    def _payload(self, request: GenerationRequest) -> dict[str, Any]:
        """Build the vendor request body."""

    @abstractmethod
    def _parse(
        self, data: Any, request: GenerationRequest
    ) -> tuple[str, TokenUsage, FinishReason]:
        """Extract content, usage and finish reason from the vendor response."""

    async def _post_json(self, url: str, payload: dict[str, Any], headers: dict[str, str]) -> Any:
        logger.debug("POST %s provider=%s", url, self.id)
        try:
            response = await self._client.post(url, json=payload, headers=headers)
        except httpx.HTTPError as exc:
            raise ProviderRequestFailedError(self.id, f"transport error: {exc!r}") from exc

        if not response.is_success:
            raise ProviderRequestFailedError(
                self.id,
                f"HTTP {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as exc:
            raise ProviderRequestFailedError(self.id, "response is not JSON") from exc


class OpenAICompatibleAdapter(HttpProviderAdapter):
    """Chat completions in the OpenAI wire format."""

    def _endpoint(self, request: GenerationRequest) -> str:
        return f"{self.base_url}/chat/completions"

    def _payload(self, request: GenerationRequest) -> dict[str, Any]:
        return _openai_payload(request)

    def _parse(
        self, data: Any, request: GenerationRequest
    ) -> tuple[str, TokenUsage, FinishReason]:
        return _parse_openai(data)


class OpenAIAdapter(OpenAICompatibleAdapter):
    id = "openai"
    name = "OpenAI"
    supported_models = ("gpt-4o", "gpt-4o-mini", "gpt-4-turbo", "gpt-3.5-turbo", "gpt-3.5-turbo-16k")
    base_priority = 85
    rate_limit_per_minute = 60
    default_base_url = "https://api.openai.com/v1"


class GroqAdapter(OpenAICompatibleAdapter):
    id = "groq"
    name = "Groq"
    supported_models = ("llama3-8b-8192", "llama3-70b-8192", "mixtral-8x7b-32768", "gemma-7b-it")
    base_priority = 90
    rate_limit_per_minute = 30
    default_base_url = "https://api.groq.com/openai/v1"


class DeepSeekAdapter(OpenAICompatibleAdapter):
    id = "deepseek"
    name = "DeepSeek"
    supported_models = ("deepseek-chat", "deepseek-coder", "deepseek-math", "deepseek-reasoner")
    base_priority = 75
    rate_limit_per_minute = 60
    default_base_url = "https://api.deepseek.com/v1"


class AnthropicAdapter(HttpProviderAdapter):
    id = "anthropic"
    name = "Anthropic"
    supported_models = (
        "claude-3-5-sonnet-20241022",
        "claude-3-opus-20240229",
        "claude-3-sonnet-20240229",
        "claude-3-haiku-20240307",
    )
    base_priority = 80
    rate_limit_per_minute = 50
    default_base_url = "https://api.anthropic.com/v1"
    api_version: ClassVar[str] = "2023-06-01"

    def _endpoint(self, request: GenerationRequest) -> str:
        return f"{self.base_url}/messages"

    def _headers(self) -> dict[str, str]:
        return {
            "x-api-key": self._api_key,
            "anthropic-version": self.api_version,
            "Content-Type": "application/json",
        }

    def _payload(self, request: GenerationRequest) -> dict[str, Any]:
        system = "\n\n".join(m.content for m in request.messages if m.role == "system")
        payload: dict[str, Any] = {
            "model": request.model,
            "max_tokens": request.max_tokens,
            "temperature": request.temperature,
            "top_p": request.top_p,
            "messages": [
                {"role": m.role, "content": m.content}
                for m in request.messages
                if m.role != "system"
            ],
        }
        if system:
            payload["system"] = system
        return payload

    def _parse(
        self, data: Any, request: GenerationRequest
    ) -> tuple[str, TokenUsage, FinishReason]:
        content = data["content"][0]["text"]
        usage = data.get("usage") or {}
        prompt_tokens = int(usage.get("input_tokens", 0))
        completion_tokens = int(usage.get("output_tokens", 0))
        return (
            content,
            TokenUsage(prompt_tokens, completion_tokens, prompt_tokens + completion_tokens),
            _finish_reason(data.get("stop_reason")),
        )


class CohereAdapter(HttpProviderAdapter):
    id = "cohere"
    name = "Cohere"
    supported_models = ("command-r-plus", "command-r", "command", "command-light")
    base_priority = 70
    rate_limit_per_minute = 100
    default_base_url = "https://api.cohere.ai/v1"

    def _endpoint(self, request: GenerationRequest) -> str:
        return f"{self.base_url}/generate"

    def _payload(self, request: GenerationRequest) -> dict[str, Any]:
        return {
            "model": request.model,
            "prompt": _flatten_prompt(request),
            "temperature": request.temperature,
            "max_tokens": request.max_tokens,
            "p": request.top_p,
        }

    def _parse(
        self, data: Any, request: GenerationRequest
    ) -> tuple[str, TokenUsage, FinishReason]:
        generation = data["generations"][0]
        billed = (data.get("meta") or {}).get("billed_units") or {}
        prompt_tokens = int(billed.get("input_tokens", 0))
        completion_tokens = int(billed.get("output_tokens", 0))
        return (
            generation["text"],
            TokenUsage(prompt_tokens, completion_tokens, prompt_tokens + completion_tokens),
            _finish_reason(generation.get("finish_reason")),
        )


class HuggingFaceAdapter(HttpProviderAdapter):
    id = "huggingface"
    name = "Hugging Face Inference"
    supported_models = (
        "microsoft/DialoGPT-medium",
        "microsoft/DialoGPT-large",
        "facebook/blenderbot-400M-distill",
        "google/flan-t5-large",
        "HuggingFaceH4/zephyr-7b-beta",
        "mistralai/Mistral-7B-Instruct-v0.1",
        "microsoft/phi-2",
    )
    base_priority = 45
    rate_limit_per_minute = 10
    default_base_url = "https://api-inference.huggingface.co/models"

    def _endpoint(self, request: GenerationRequest) -> str:
        return f"{self.base_url}/{request.model}"

    def _payload(self, request: GenerationRequest) -> dict[str, Any]:
        return {
            "inputs": _flatten_prompt(request),
            "parameters": {
                "temperature": request.temperature,
                "max_new_tokens": request.max_tokens,
                "top_p": request.top_p,
                "return_full_text": False,
            },
        }

    def _parse(
        self, data: Any, request: GenerationRequest
    ) -> tuple[str, TokenUsage, FinishReason]:
        item = data[0] if isinstance(data, list) else data
        content = item["generated_text"]
        prompt_tokens = estimate_tokens(_flatten_prompt(request))
        completion_tokens = estimate_tokens(content)
        return (
            content,
            TokenUsage(prompt_tokens, completion_tokens, prompt_tokens + completion_tokens),
            "stop",
        )


class ProxyBackendAdapter(HttpProviderAdapter):
    """Locally hosted backend reached through the same-origin agent proxy.

    Health is `GET {proxy}?provider=<id>&action=health`; generation is
    `POST {proxy}` with `{"provider": <id>, "payload": <backend payload>}`.
    """

    kind = "local"
    requires_key = False

    def __init__(self, client: httpx.AsyncClient, *, proxy_url: str) -> None:
        super().__init__(client, base_url=proxy_url)

    async def is_available(self) -> bool:
        try:
            response = await self._client.get(
                self.base_url, params={"provider": self.id, "action": "health"}
            )
        except httpx.HTTPError as exc:
            logger.debug("Health check failed for %s: %r", self.id, exc)
            return False
        if not response.is_success:
            return False
        try:
            body = response.json()
        except ValueError:
            return True
        return not (isinstance(body, dict) and body.get("success") is False)

    def _endpoint(self, request: GenerationRequest) -> str:
        return self.base_url

    def _headers(self) -> dict[str, str]:
        return {"Content-Type": "application/json"}

    def _payload(self, request: GenerationRequest) -> dict[str, Any]:
        return {"provider": self.id, "payload": self._backend_payload(request)}

    def _backend_payload(self, request: GenerationRequest) -> dict[str, Any]:
        return _openai_payload(request)

    def _parse(
        self, data: Any, request: GenerationRequest
    ) -> tuple[str, TokenUsage, FinishReason]:
        return _parse_openai(data)


class OllamaAdapter(ProxyBackendAdapter):
    id = "ollama"
    name = "Ollama (Local)"
    supported_models = (
        "qwen2.5:latest",
        "qwen2.5:7b",
        "qwen2.5:14b",
        "llama3.2:3b",
        "llama3.2:1b",
        "mistral:7b",
        "codellama:7b",
        "neural-chat:7b",
        "phi3:3.8b",
    )
    base_priority = 60
    rate_limit_per_minute = 60

    def _backend_payload(self, request: GenerationRequest) -> dict[str, Any]:
        return {
            "model": request.model,
            "messages": [{"role": m.role, "content": m.content} for m in request.messages],
            "options": {
                "temperature": request.temperature,
                "num_predict": request.max_tokens,
                "top_p": request.top_p,
            },
            "stream": False,
        }

    def _parse(
        self, data: Any, request: GenerationRequest
    ) -> tuple[str, TokenUsage, FinishReason]:
        content = data["message"]["content"]
        prompt_tokens = int(data.get("prompt_eval_count") or 0)
        completion_tokens = int(data.get("eval_count") or 0)
        return (
            content,
            TokenUsage(prompt_tokens, completion_tokens, prompt_tokens + completion_tokens),
            _finish_reason(data.get("done_reason")),
        )


class VllmAdapter(ProxyBackendAdapter):
    id = "vllm"
    name = "vLLM (Local)"
    supported_models = ("llama-3-8b-instruct", "mistral-7b-instruct", "qwen2.5-7b-instruct")
    base_priority = 55
    rate_limit_per_minute = 120


class LocalAIAdapter(ProxyBackendAdapter):
    id = "localai"
    name = "LocalAI"
    supported_models = ("gpt-3.5-turbo", "gpt-4", "llama2-chat", "codellama-instruct", "mistral-instruct")
    base_priority = 50
    rate_limit_per_minute = 1000


def build_default_adapters(settings: Settings, client: httpx.AsyncClient) -> list[ProviderAdapter]:
    """Instantiate every supported adapter from process settings."""
    keys = settings.api_keys()
    proxy_url = settings.agent_proxy_url
    return [
        GroqAdapter(client, api_key=keys["groq"]),
        OpenAIAdapter(client, api_key=keys["openai"]),
        AnthropicAdapter(client, api_key=keys["anthropic"]),
        DeepSeekAdapter(client, api_key=keys["deepseek"]),
        CohereAdapter(client, api_key=keys["cohere"]),
        OllamaAdapter(client, proxy_url=proxy_url),
        VllmAdapter(client, proxy_url=proxy_url),
        LocalAIAdapter(client, proxy_url=proxy_url),
        HuggingFaceAdapter(client, api_key=keys["huggingface"]),
    ]


def _openai_payload(request: GenerationRequest) -> dict[str, Any]:
    return {
        "model": request.model,
        "messages": [{"role": m.role, "content": m.content} for m in request.messages],
        "temperature": request.temperature,
        "max_tokens": request.max_tokens,
        "top_p": request.top_p,
        "stream": False,
    }


def _parse_openai(data: Any) -> tuple[str, TokenUsage, FinishReason]:
    choice = data["choices"][0]
    usage = data.get("usage") or {}
    prompt_tokens = int(usage.get("prompt_tokens", 0))
    completion_tokens = int(usage.get("completion_tokens", 0))
    total_tokens = int(usage.get("total_tokens", prompt_tokens + completion_tokens))
    return (
        choice["message"]["content"],
        TokenUsage(prompt_tokens, completion_tokens, total_tokens),
        _finish_reason(choice.get("finish_reason")),
    )


def _flatten_prompt(request: GenerationRequest) -> str:
    return "\n".join(f"{m.role}: {m.content}" for m in request.messages)


def _finish_reason(value: Any) -> FinishReason:
    if not value:
        return "stop"
    return _FINISH_REASONS.get(str(value).lower(), "stop")
