"""OpenAI-compatible LLM client.

Usage:
    from namedrop.services.llm import chat_completion

    response = await chat_completion("Rewrite this bio: ...")
"""

import logging

from openai import AsyncOpenAI

from namedrop.config import get_settings

logger = logging.getLogger(__name__)


def _get_client() -> AsyncOpenAI:
    """Create an async OpenAI client from settings."""
    settings = get_settings()
    return AsyncOpenAI(
        base_url=settings.openai_base_url or None,
        api_key=settings.openai_api_key,
    )


async def chat_completion(
    prompt: str,
    system: str | None = None,
    model: str | None = None,
    max_tokens: int = 1000,
    temperature: float = 0.7,
    json_mode: bool = False,
) -> str:
    """Run a chat completion against the configured model.

    Args:
        prompt: The user message to send.
        system: Optional system message.
        model: Override the default model name.
        max_tokens: Maximum response tokens.
        temperature: Sampling temperature.
        json_mode: Ask the model for a JSON object response.

    Returns:
        The assistant's response text.

    Raises:
        openai.APIError: On API errors.
    """
    settings = get_settings()
    client = _get_client()

    messages = []
    if system:
        messages.append({"role": "system", "content": system})
    messages.append({"role": "user", "content": prompt})

    kwargs = {}
    if json_mode:
        kwargs["response_format"] = {"type": "json_object"}

    response = await client.chat.completions.create(
        model=model or settings.openai_model,
        messages=messages,
        max_tokens=max_tokens,
        temperature=temperature,
        **kwargs,
    )

    return response.choices[0].message.content or ""
