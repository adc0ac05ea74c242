from __future__ import annotations

import logging
from typing import Dict, Iterator, List

from . import llm
from .llm import ModelConfig

logger = logging.getLogger(__name__)


def tutor_system_prompt(textbook_name: str) -> str:
    return (
        "You are a friendly and knowledgeable AI Tutor. "
        f'Your area of expertise is the textbook "{textbook_name}". '
        "Your goal is to help the user understand concepts, answer their questions, and guide them in their studies. "
        "Be encouraging and clear in your explanations."
    )


class TutorChat:
    """A running tutor conversation about one textbook."""

    def __init__(self, textbook_name: str, model_config: ModelConfig = "balanced"):
        self.textbook_name = textbook_name
        self.model_config = model_config
        self.history: List[Dict[str, str]] = [
            {"role": "system", "content": tutor_system_prompt(textbook_name)},
        ]

    def stream_reply(self, text: str) -> Iterator[str]:
        """Yield the tutor's reply to `text` chunk by chunk.

        The exchange is appended to the history only after the stream has
        finished, so an interrupted reply leaves no trace.
        """
        messages = self.history + [{"role": "user", "content": text}]
        reply = ""
        for chunk in llm.stream(messages, self.model_config):
            reply += chunk
            yield chunk
        self.history.append({"role": "user", "content": text})
        self.history.append({"role": "assistant", "content": reply})
        logger.debug("tutor: turn committed, history=%d messages", len(self.history))


def start_tutor_chat(textbook_name: str, model_config: ModelConfig = "balanced") -> TutorChat:
    return TutorChat(textbook_name, model_config)
