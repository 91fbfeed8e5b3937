from __future__ import annotations

from typing import Any, List, Optional

from pydantic_ai import Agent
from pydantic_ai.exceptions import ModelHTTPError
from pydantic_ai.messages import (
    ModelMessage,
    ModelRequest,
    ModelResponse,
    SystemPromptPart,
    TextPart,
    UserPromptPart,
)
from pydantic_ai.models import Model
from pydantic_ai.models.openai import OpenAIChatModel
from pydantic_ai.providers.litellm import LiteLLMProvider
from pydantic_ai.settings import ModelSettings

from app.config import get_settings
from app.exceptions import AIAuthenticationError, AIGenerationError
from app.infra.logging_config import get_logger

logger = get_logger("llm")

_AUTH_STATUS_CODES = (401, 403)


def _to_model_messages(messages: List[dict[str, str]]) -> List[ModelMessage]:
    """Convert a list of {role, content} into pydantic_ai messages, preserving order."""
    out: List[ModelMessage] = []
    for item in messages:
        role = item.get("role", "user")
        content = (item.get("content") or "").strip()
        if not content:
            continue
        if role == "user":
            out.append(ModelRequest(parts=[UserPromptPart(content=content)]))
        elif role == "assistant":
            out.append(ModelResponse(parts=[TextPart(content=content)]))
        elif role == "system":
            out.append(ModelRequest(parts=[SystemPromptPart(content=content)]))
    return out


def split_prompt(messages: List[dict[str, str]]) -> tuple[Optional[str], List[dict[str, str]]]:
    """
    Separate the trailing user turn (the prompt for this run) from the history
    that precedes it. Returns (None, messages) when the last turn is not a user turn.
    """
    if messages and messages[-1].get("role") == "user":
        return messages[-1].get("content") or "", list(messages[:-1])
    return None, list(messages)


class LLMRunner:
    """Chat-completion backend. ``complete`` takes the full ordered message list."""

    def __init__(
        self,
        model_name: str,
        api_key: Optional[str] = None,
        api_base: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        model: Optional[Model] = None,
    ) -> None:
        if model is None:
            provider = LiteLLMProvider(api_key=api_key, api_base=api_base)
            model = OpenAIChatModel(model_name, provider=provider)
        logger.info(f"Initializing LLM runner with model {model_name}")
        settings: dict[str, Any] = {}
        if temperature is not None:
            settings["temperature"] = temperature
        if max_tokens is not None:
            settings["max_tokens"] = max_tokens
        self.model = model
        self.model_settings = ModelSettings(**settings)
        self._agent = Agent(model, model_settings=self.model_settings)

    async def complete(self, messages: List[dict[str, str]]) -> str:
        prompt, history = split_prompt(messages)
        try:
            result = await self._agent.run(
                prompt,
                message_history=_to_model_messages(history) or None,
            )
        except ModelHTTPError as e:
            if e.status_code in _AUTH_STATUS_CODES:
                logger.error("LLM backend rejected credentials: %s", e)
                raise AIAuthenticationError() from e
            logger.error("LLM backend returned HTTP %s: %s", e.status_code, e)
            raise AIGenerationError() from e
        except Exception as e:
            logger.exception("Error generating AI response")
            raise AIGenerationError() from e
        return str(result.output)


def build_llm_runner_from_env() -> LLMRunner:
    settings = get_settings()
    logger.info(
        "LLM runner config: model=%s, api_key=%s, api_base=%s",
        settings.llm_model,
        "set" if settings.litellm_api_key else "not set",
        settings.litellm_api_base or "(default)",
    )
    return LLMRunner(
        model_name=settings.llm_model,
        api_key=settings.litellm_api_key,
        api_base=settings.litellm_api_base,
        temperature=settings.llm_temperature,
        max_tokens=settings.llm_max_tokens,
    )
