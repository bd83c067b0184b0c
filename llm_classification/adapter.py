"""Completion service adapters.

Provides a base interface, a streaming adapter for Ollama-style
``/api/generate`` endpoints and a deterministic mock for testing.
"""

import threading
from abc import ABC, abstractmethod
from typing import Optional

import requests

from categorizer.config import CompletionSettings
from llm_classification.errors import CompletionError
from llm_classification.stream import StreamAccumulator


class BaseCompletionAdapter(ABC):
    """Abstract base for all completion adapters."""

    @abstractmethod
    def complete(self, prompt: str) -> str:
        """Send a prompt to the completion service and return its full text.

        Args:
            prompt: The fully formatted prompt string.

        Returns:
            The concatenated answer text.

        Raises:
            CompletionError: If the call or the stream fails.
        """


class OllamaCompletionAdapter(BaseCompletionAdapter):
    """Adapter for endpoints that stream newline-delimited JSON fragments.

    Sends ``{"model": ..., "prompt": ...}`` and reads the response until
    the stream ends, feeding every transport chunk to a
    ``StreamAccumulator``.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:11434/api/generate",
        model: str = "llama3.1",
        timeout_seconds: float = 120.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        """Initialise the streaming adapter.

        Args:
            base_url: Full URL of the generate endpoint.
            model: Model identifier sent with every request.
            timeout_seconds: Connect/read timeout for one request.
            session: Optional shared session. Each thread gets its own
                session when omitted.
        """
        self._base_url = base_url
        self._model = model
        self._timeout_seconds = timeout_seconds
        self._session = session
        self._local = threading.local()

    def complete(self, prompt: str) -> str:
        payload = {"model": self._model, "prompt": prompt}
        accumulator = StreamAccumulator()
        try:
            with self._session_for_thread().post(
                self._base_url,
                json=payload,
                stream=True,
                timeout=self._timeout_seconds,
            ) as response:
                if response.status_code >= 400:
                    raise CompletionError(
                        stage="status",
                        detail=f"HTTP {response.status_code} from {self._base_url}",
                    )
                for chunk in response.iter_content(chunk_size=None):
                    if chunk:
                        accumulator.feed(chunk)
        except requests.RequestException as exc:
            raise CompletionError(stage="transport", detail=str(exc)) from exc
        return accumulator.finish()

    def _session_for_thread(self) -> requests.Session:
        if self._session is not None:
            return self._session
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            self._local.session = session
        return session


class MockCompletionAdapter(BaseCompletionAdapter):
    """Deterministic adapter that returns a fixed label.

    Used for dry runs and tests where no completion service is available.
    """

    def __init__(self, response: str = "Technology") -> None:
        self._response = response

    def complete(self, prompt: str) -> str:
        """Return the fixed response regardless of input.

        Args:
            prompt: Ignored - present only to satisfy the interface.

        Returns:
            The configured response text.
        """
        return self._response


def build_completion_adapter(settings: CompletionSettings) -> BaseCompletionAdapter:
    """Create the adapter selected by ``settings.adapter``."""
    if settings.adapter == "mock":
        return MockCompletionAdapter()
    return OllamaCompletionAdapter(
        base_url=settings.base_url,
        model=settings.model,
        timeout_seconds=settings.timeout_seconds,
    )
