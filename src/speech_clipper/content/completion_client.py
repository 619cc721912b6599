"""Structured completions from local LLMs via Ollama."""

import asyncio
import json
import time
from collections.abc import Sequence
from typing import Any

import ollama

from ..logging_utils import get_logger
from .config import (
    DEFAULT_CONTENT_MODELS,
    DEFAULT_OLLAMA_BASE_URL,
    DEFAULT_OLLAMA_TEMPERATURE,
    DEFAULT_OLLAMA_TIMEOUT,
)
from .exceptions import CompletionError
from .models import CompletionResponse

logger = get_logger(__name__)


class CompletionClient:
    """Requests schema-constrained JSON from an ordered list of Ollama models."""

    def __init__(
        self,
        models: Sequence[str] = DEFAULT_CONTENT_MODELS,
        base_url: str = DEFAULT_OLLAMA_BASE_URL,
        timeout: float = DEFAULT_OLLAMA_TIMEOUT,
        temperature: float = DEFAULT_OLLAMA_TEMPERATURE,
    ) -> None:
        """
        Initialize the completion client.

        Args:
            models: Ollama model names, tried in order until one succeeds
            base_url: Ollama service URL
            timeout: Per-model request timeout in seconds
            temperature: LLM temperature for generation
        """
        if not models:
            raise ValueError("At least one model is required")

        self.models = list(models)
        self.base_url = base_url
        self.timeout = timeout
        self.temperature = temperature
        self._client = ollama.AsyncClient(host=base_url)

    async def complete(
        self, system_prompt: str, payload: Any, schema: dict[str, Any]
    ) -> CompletionResponse:
        """
        Ask the first working model for a JSON answer.

        Args:
            system_prompt: Instructions for the model
            payload: JSON-serializable input sent as the user message
            schema: JSON schema the answer should follow

        Returns:
            CompletionResponse with the raw message content and the model used

        Raises:
            CompletionError: If every model fails
        """
        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": json.dumps(payload)},
        ]
        failures = []

        for model in self.models:
            start_time = time.time()
            try:
                logger.debug(f"Trying completion with model: {model}")
                response = await asyncio.wait_for(
                    self._client.chat(
                        model=model,
                        messages=messages,
                        format=schema,
                        options={"temperature": self.temperature},
                    ),
                    timeout=self.timeout,
                )
                content = response["message"]["content"]
            except TimeoutError:
                logger.warning(f"Model {model} timed out after {self.timeout}s")
                failures.append(f"{model}: timeout")
                continue
            except Exception as e:
                logger.warning(f"Error with model {model}: {e}")
                failures.append(f"{model}: {e}")
                continue

            logger.info(f"Completion from {model} in {time.time() - start_time:.2f}s")
            return CompletionResponse(content=content, model=model)

        raise CompletionError(
            f"Failed to process with any available model ({'; '.join(failures)})"
        )
