"""
Transport for OpenAI-compatible chat-completion endpoints.

Works with the Hugging Face inference router as well as any server
speaking the OpenAI chat API (LM Studio, vLLM, ...).
"""

from __future__ import annotations

import logging
import os
from typing import AsyncIterator

import openai

from ..exceptions import (
    ConfigValidationError,
    ConnectivityError,
    PayloadError,
    RequestTimeoutError,
    TransportError,
)
from .base import BaseTransport, ChatRequest, TransportConfig, build_wire_messages

logger = logging.getLogger(__name__)


def map_openai_error(error: openai.OpenAIError, timeout: float) -> TransportError:
    """
    Translate an SDK error into the transport error taxonomy.

    Args:
        error: Error raised by the openai client
        timeout: Request timeout, reported on timeouts

    Returns:
        Typed TransportError to raise in its place
    """
    reason = str(error)
    # APITimeoutError subclasses APIConnectionError, check it first
    if isinstance(error, openai.APITimeoutError):
        return RequestTimeoutError(timeout, details=reason)
    if isinstance(error, openai.APIConnectionError):
        return ConnectivityError("Could not reach the chat service", details=reason)
    if isinstance(error, (openai.BadRequestError, openai.UnprocessableEntityError)):
        return PayloadError("The chat service rejected the request", details=reason)
    if "image" in reason.lower():
        return PayloadError("The chat service could not process the image", details=reason)
    return TransportError("Chat service error", details=reason)


class OpenAITransport(BaseTransport):
    """
    Streams replies through ``openai.AsyncOpenAI``.

    Usage:
        transport = OpenAITransport(TransportConfig(api_key="..."))
        async for fragment in transport.stream(request):
            print(fragment, end="")
    """

    name = "openai"
    display_name = "OpenAI-compatible"

    def __init__(
        self,
        config: TransportConfig | None = None,
        client: openai.AsyncOpenAI | None = None,
        timeout: float = 30.0,
    ):
        super().__init__(config)
        self.timeout = timeout
        self._client = client or openai.AsyncOpenAI(
            base_url=self.config.base_url,
            api_key=self.config.api_key,
            timeout=timeout,
            max_retries=0,
        )

    @classmethod
    def from_config(
        cls,
        transport_config: dict,
        timeout: float = 30.0,
    ) -> "OpenAITransport":
        """
        Create a transport from the [transport] config section.

        Raises:
            ConfigValidationError: If the API key variable is not set
        """
        key_env = transport_config.get("api_key_env", "HF_TOKEN")
        api_key = os.environ.get(key_env, "")
        if not api_key:
            raise ConfigValidationError(
                f"API key not found, set the {key_env} environment variable",
                field="transport.api_key_env"
            )

        config = TransportConfig(
            base_url=transport_config.get("base_url", TransportConfig.base_url),
            api_key=api_key,
            model=transport_config.get("model", TransportConfig.model),
            max_tokens=transport_config.get("max_tokens", TransportConfig.max_tokens),
            temperature=transport_config.get("temperature", TransportConfig.temperature),
            top_p=transport_config.get("top_p", TransportConfig.top_p),
        )
        return cls(config, timeout=timeout)

    async def stream(self, request: ChatRequest) -> AsyncIterator[str]:
        messages = build_wire_messages(request)
        logger.debug(
            "Requesting completion from %s with %d messages",
            self.config.model, len(messages),
        )

        try:
            response = await self._client.chat.completions.create(
                model=request.model or self.config.model,
                messages=messages,
                max_tokens=request.max_tokens or self.config.max_tokens,
                temperature=(
                    request.temperature
                    if request.temperature is not None
                    else self.config.temperature
                ),
                top_p=request.top_p if request.top_p is not None else self.config.top_p,
                stream=True,
                **self.config.extra,
            )

            async for chunk in response:
                if not chunk.choices:
                    continue
                delta = chunk.choices[0].delta
                if delta is not None and delta.content:
                    yield delta.content

        except openai.OpenAIError as e:
            error = map_openai_error(e, self.timeout)
            logger.warning("Transport failure: %s", error.message)
            raise error from e
