from __future__ import annotations

import logging

from . import llm
from .llm import ModelConfig
from .performance_config import MAX_SOURCE_CHARS

logger = logging.getLogger(__name__)


def research_textbook(textbook_name: str, model_config: ModelConfig = "balanced") -> bool:
    """Check with a web search whether the named textbook exists."""
    prompt = (
        f'Does a textbook with the name "{textbook_name}" exist? '
        'Please answer with a simple "Yes" or "No", followed by a brief confirmation.'
    )
    text = llm.generate(prompt, model_config, web_search=True)
    logger.info('research_textbook: name="%s" reply="%s"', textbook_name, text[:80].replace("\n", " "))
    return text.strip().lower().startswith("yes")


def is_language_textbook(textbook_name: str, model_config: ModelConfig = "balanced") -> bool:
    prompt = (
        f'Is "{textbook_name}" a textbook primarily for learning a language '
        '(like Spanish, French, Japanese, etc.)? Answer with only "Yes" or "No".'
    )
    text = llm.generate(prompt, model_config)
    return "yes" in text.lower()


def find_source_material(textbook_name: str, topic: str, model_config: ModelConfig = "balanced") -> str:
    """Search the web for passages covering `topic` in the textbook.

    The result is plain text meant to be pasted into other prompts as source
    context, capped at MAX_SOURCE_CHARS.
    """
    prompt = (
        f'Search the web for material from or about the textbook "{textbook_name}" '
        f'that covers the following: "{topic}".\n'
        "Return only the relevant facts, definitions and explanations as plain prose or bullet points. "
        "Do not add commentary about the search itself."
    )
    text = llm.generate(prompt, model_config, web_search=True).strip()
    logger.debug("find_source_material: topic=%r -> %d chars", topic, len(text))
    return text[:MAX_SOURCE_CHARS]
