"""Thin wrapper around the OpenAI chat completion and moderation APIs."""

import logging
from typing import Optional

from openai import AsyncOpenAI, OpenAIError

from ...core.errors import GenerationError

logger = logging.getLogger(__name__)


class OpenAIService:
    """Completion and moderation calls over one shared AsyncOpenAI client."""

    def __init__(self, client: AsyncOpenAI, model: str):
        self.client = client
        self.model = model

    async def complete(
        self,
        prompt: str,
        *,
        system_prompt: str,
        max_tokens: int,
        temperature: float,
        json_mode: bool = False,
    ) -> Optional[str]:
        """
        Run a single chat completion and return the first choice's content.

        Returns None when the provider answered without content.

        Raises:
            GenerationError: if the provider call fails. The raw provider
                error is kept as internal detail only.
        """
        kwargs = {}
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        try:
            completion = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": prompt},
                ],
                max_tokens=max_tokens,
                temperature=temperature,
                **kwargs,
            )
        except OpenAIError as e:
            logger.error(f"OpenAI API error: {e}", extra={"upstream": "openai", "error_type": type(e).__name__})
            raise GenerationError(detail=f"OpenAI generation failed: {e}") from e

        if not completion.choices:
            return None
        message = completion.choices[0].message
        return message.content if message else None

    async def moderate(self, content: str) -> bool:
        """Return True if the moderation API flags the content.

        Moderation failures never block a story: they are logged and the
        content is treated as not flagged.
        """
        try:
            moderation = await self.client.moderations.create(input=content)
        except OpenAIError as e:
            logger.warning(
                f"OpenAI moderation error: {e}",
                extra={"upstream": "openai", "error_type": type(e).__name__},
            )
            return False

        if not moderation.results:
            return False
        return bool(moderation.results[0].flagged)
