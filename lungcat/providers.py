"""
Upstream LLM providers for Lungcat.

Each provider turns a prompt into text. Anything that goes wrong upstream
(missing SDK, missing key, network error, timeout, empty output) surfaces
as UpstreamError, so callers have a single failure type to degrade on.
"""

import os
from abc import ABC, abstractmethod
from typing import Callable, Optional, Union

from lungcat.config import DEFAULT_MODELS, Settings, get_settings
from lungcat.errors import UpstreamError


class TextGenerator(ABC):
    """Abstract base class for upstream text generators."""

    name: str = "upstream"

    @abstractmethod
    def generate(
        self,
        prompt: str,
        *,
        temperature: float = 0.7,
        max_output_tokens: int = 150,
    ) -> str:
        """Return generated text for the prompt, or raise UpstreamError."""
        pass


class MockGenerator(TextGenerator):
    """
    Scripted generator for tests and demos.

    Args:
        responses: A fixed string, a list consumed in order (last one
                   repeats), or a callable taking the prompt.
        error: If set, every call raises UpstreamError with this message.
        on_call: Hook invoked with the prompt before responding.
    """

    name = "mock"

    def __init__(
        self,
        responses: Union[str, list[str], Callable[[str], str]] = "Keep going, you're doing great!",
        error: Optional[str] = None,
        on_call: Optional[Callable[[str], None]] = None,
    ):
        self.responses = responses
        self.error = error
        self.on_call = on_call
        self.prompts: list[str] = []

    @property
    def call_count(self) -> int:
        return len(self.prompts)

    def generate(
        self,
        prompt: str,
        *,
        temperature: float = 0.7,
        max_output_tokens: int = 150,
    ) -> str:
        self.prompts.append(prompt)
        if self.on_call:
            self.on_call(prompt)
        if self.error:
            raise UpstreamError(self.name, self.error)
        if callable(self.responses):
            return self.responses(prompt)
        if isinstance(self.responses, list):
            index = min(len(self.prompts) - 1, len(self.responses) - 1)
            return self.responses[index]
        return self.responses


class OpenAIGenerator(TextGenerator):
    """
    OpenAI chat-completions generator.

    Requires OPENAI_API_KEY environment variable.
    """

    name = "openai"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout_seconds: float = 20.0,
    ):
        self.api_key = api_key or os.getenv("OPENAI_API_KEY")
        self.model = model or DEFAULT_MODELS["openai"]
        self.timeout_seconds = timeout_seconds
        self._client = None

    @property
    def client(self):
        if self._client is None:
            try:
                from openai import OpenAI
            except ImportError as exc:
                raise UpstreamError(self.name, "openai package required. Install with: pip install openai") from exc
            if not self.api_key:
                raise UpstreamError(self.name, "no API key. Set OPENAI_API_KEY or pass api_key.")
            self._client = OpenAI(api_key=self.api_key, timeout=self.timeout_seconds, max_retries=0)
        return self._client

    def generate(
        self,
        prompt: str,
        *,
        temperature: float = 0.7,
        max_output_tokens: int = 150,
    ) -> str:
        client = self.client
        try:
            response = client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=temperature,
                max_tokens=max_output_tokens,
            )
        except Exception as e:
            raise UpstreamError(self.name, f"{type(e).__name__}: {e}") from e

        if not response.choices:
            raise UpstreamError(self.name, "response has no choices")
        text = response.choices[0].message.content
        if not text or not text.strip():
            raise UpstreamError(self.name, "empty response")
        return text.strip()


class AnthropicGenerator(TextGenerator):
    """
    Anthropic messages generator.

    Requires ANTHROPIC_API_KEY environment variable.
    """

    name = "anthropic"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout_seconds: float = 20.0,
    ):
        self.api_key = api_key or os.getenv("ANTHROPIC_API_KEY")
        self.model = model or DEFAULT_MODELS["anthropic"]
        self.timeout_seconds = timeout_seconds
        self._client = None

    @property
    def client(self):
        if self._client is None:
            try:
                from anthropic import Anthropic
            except ImportError as exc:
                raise UpstreamError(self.name, "anthropic package required. Install with: pip install anthropic") from exc
            if not self.api_key:
                raise UpstreamError(self.name, "no API key. Set ANTHROPIC_API_KEY or pass api_key.")
            self._client = Anthropic(api_key=self.api_key, timeout=self.timeout_seconds, max_retries=0)
        return self._client

    def generate(
        self,
        prompt: str,
        *,
        temperature: float = 0.7,
        max_output_tokens: int = 150,
    ) -> str:
        client = self.client
        try:
            response = client.messages.create(
                model=self.model,
                max_tokens=max_output_tokens,
                temperature=temperature,
                messages=[{"role": "user", "content": prompt}],
            )
        except Exception as e:
            raise UpstreamError(self.name, f"{type(e).__name__}: {e}") from e

        parts = [block.text for block in response.content if getattr(block, "type", "") == "text"]
        text = "".join(parts).strip()
        if not text:
            raise UpstreamError(self.name, "empty response")
        return text


class GeminiGenerator(TextGenerator):
    """
    Google Gemini generator via google-generativeai.

    Requires GOOGLE_API_KEY environment variable.
    """

    name = "gemini"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout_seconds: float = 20.0,
    ):
        self.api_key = api_key or os.getenv("GOOGLE_API_KEY")
        self.model = model or DEFAULT_MODELS["gemini"]
        self.timeout_seconds = timeout_seconds
        self._model = None

    @property
    def client(self):
        if self._model is None:
            try:
                import google.generativeai as genai
            except ImportError as exc:
                raise UpstreamError(
                    self.name, "google-generativeai package required. Install with: pip install google-generativeai"
                ) from exc
            if not self.api_key:
                raise UpstreamError(self.name, "no API key. Set GOOGLE_API_KEY or pass api_key.")
            genai.configure(api_key=self.api_key)
            self._model = genai.GenerativeModel(self.model)
        return self._model

    def generate(
        self,
        prompt: str,
        *,
        temperature: float = 0.7,
        max_output_tokens: int = 150,
    ) -> str:
        model = self.client
        try:
            response = model.generate_content(
                prompt,
                generation_config={
                    "temperature": temperature,
                    "max_output_tokens": max_output_tokens,
                },
                request_options={"timeout": self.timeout_seconds},
            )
            text = response.text
        except Exception as e:
            raise UpstreamError(self.name, f"{type(e).__name__}: {e}") from e

        if not text or not text.strip():
            raise UpstreamError(self.name, "empty response")
        return text.strip()


PROVIDERS: dict[str, type[TextGenerator]] = {
    "openai": OpenAIGenerator,
    "anthropic": AnthropicGenerator,
    "gemini": GeminiGenerator,
}


def create_generator(settings: Optional[Settings] = None) -> TextGenerator:
    """Build the generator named by LUNGCAT_PROVIDER (default: openai)."""
    settings = settings or get_settings()
    if settings.provider == "mock":
        return MockGenerator()
    cls = PROVIDERS.get(settings.provider)
    if cls is None:
        raise ValueError(
            f"Unknown provider '{settings.provider}'. Choose from: mock, {', '.join(PROVIDERS)}"
        )
    return cls(model=settings.model, timeout_seconds=settings.upstream_timeout_seconds)
