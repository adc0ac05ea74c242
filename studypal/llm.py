from __future__ import annotations

import logging
import re
from typing import Any, Dict, Iterator, List, Literal, Optional

import openai
from langchain_openai import ChatOpenAI

from .config import OPENAI_MODEL, require_api_key
from .performance_config import (
    FAST_REASONING_EFFORT,
    LLM_MAX_TOKENS_FAST,
    LLM_TEMPERATURE_FAST,
)

logger = logging.getLogger(__name__)

ModelConfig = Literal["balanced", "fastest"]
MODEL_CONFIGS = ("balanced", "fastest")

QUOTA_MESSAGE = "You've reached your request limit. Please try again later."

_QUOTA_MARKERS = ("RESOURCE_EXHAUSTED", "insufficient_quota")
_REASONING_MODEL = re.compile(r"^(gpt-5|o\d)")


class QuotaExceededError(Exception):
    """Raised when the backend reports rate limiting or quota exhaustion."""

    def __init__(self, message: str = "API quota exceeded. Please check your plan and billing details."):
        super().__init__(message)


def is_quota_error(error: BaseException) -> bool:
    if isinstance(error, (QuotaExceededError, openai.RateLimitError)):
        return True
    text = str(error) or repr(error)
    return any(marker in text for marker in _QUOTA_MARKERS)


def _is_reasoning_model(model: str) -> bool:
    return bool(_REASONING_MODEL.match(model or ""))


def get_chat_model(
    model_config: ModelConfig = "balanced",
    json_mode: bool = False,
    web_search: bool = False,
    streaming: bool = False,
):
    """Build the chat model for one call.

    "fastest" turns extended reasoning off on reasoning models and caps the
    temperature and output length on the others. json_mode asks for a JSON
    object response; web_search binds the provider's web search tool, which
    only exists on the Responses API.
    """
    kwargs: Dict[str, Any] = {
        "model": OPENAI_MODEL,
        "openai_api_key": require_api_key(),
        "streaming": streaming,
    }
    if _is_reasoning_model(OPENAI_MODEL):
        if model_config == "fastest":
            kwargs["reasoning_effort"] = FAST_REASONING_EFFORT
    elif model_config == "fastest":
        kwargs["temperature"] = LLM_TEMPERATURE_FAST
        kwargs["max_tokens"] = LLM_MAX_TOKENS_FAST
    else:
        kwargs["temperature"] = 0.2

    if web_search:
        kwargs["use_responses_api"] = True
        llm = ChatOpenAI(**kwargs)
        return llm.bind_tools([{"type": "web_search_preview"}])

    llm = ChatOpenAI(**kwargs)
    if json_mode:
        return llm.bind(response_format={"type": "json_object"})
    return llm


def message_text(message: Any) -> str:
    """Flatten a model message or chunk into plain text.

    Chat Completions responses carry a string; Responses API and tool-using
    calls carry a list of content blocks.
    """
    content = getattr(message, "content", message)
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts: List[str] = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and isinstance(block.get("text"), str):
                parts.append(block["text"])
        return "".join(parts)
    return str(content)


def _messages(prompt: str, system: Optional[str]) -> List[Dict[str, str]]:
    messages = []
    if system:
        messages.append({"role": "system", "content": system})
    messages.append({"role": "user", "content": prompt})
    return messages


def generate(
    prompt: str,
    model_config: ModelConfig = "balanced",
    system: Optional[str] = None,
    json_mode: bool = False,
    web_search: bool = False,
) -> str:
    """Send one prompt and return the reply text.

    Quota errors are re-raised as QuotaExceededError; everything else
    propagates unchanged.
    """
    llm = get_chat_model(model_config, json_mode=json_mode, web_search=web_search)
    logger.debug("generate: config=%s json=%s web=%s prompt_len=%d", model_config, json_mode, web_search, len(prompt))
    try:
        resp = llm.invoke(_messages(prompt, system))
    except Exception as e:
        if is_quota_error(e):
            raise QuotaExceededError() from e
        raise
    return message_text(resp)


def stream(messages: List[Dict[str, str]], model_config: ModelConfig = "balanced") -> Iterator[str]:
    """Stream a chat reply as text chunks, mapping quota errors like generate()."""
    llm = get_chat_model(model_config, streaming=True)
    try:
        for chunk in llm.stream(messages):
            text = message_text(chunk)
            if text:
                yield text
    except Exception as e:
        if is_quota_error(e):
            raise QuotaExceededError() from e
        raise
