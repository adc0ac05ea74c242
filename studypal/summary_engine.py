from __future__ import annotations

import logging

from . import llm
from .llm import ModelConfig

logger = logging.getLogger(__name__)

APP_FEATURES = (
    "'Quiz Me', 'Create Flashcards', 'Summarize a Topic', "
    "'Get Answers for Questions', 'Explain Like I'm 5'"
)


def _with_context(prompt: str, context: str) -> str:
    if not context:
        return prompt
    return f"{prompt}\n\nUse the following source material where it is relevant:\n---\n{context}\n---"


def summarize_topic(
    textbook_name: str,
    topic: str,
    is_eli5_mode: bool = False,
    model_config: ModelConfig = "balanced",
    context: str = "",
) -> str:
    """
    Summarize a topic from the textbook.

    Args:
        textbook_name: Name of the textbook the user is studying
        topic: The topic to summarize
        is_eli5_mode: Explain it as if to a five-year-old
        model_config: "balanced" or "fastest"
        context: Optional source material to ground the summary

    Returns:
        The summary text
    """
    prompt = f'Based on the textbook "{textbook_name}", provide a concise summary of the following topic: "{topic}".'
    if is_eli5_mode:
        prompt += " Explain it in a super simple way, like I'm 5 years old."
    return llm.generate(_with_context(prompt, context), model_config)


def get_answers(textbook_name: str, questions: str, model_config: ModelConfig = "balanced", context: str = "") -> str:
    prompt = f'Based on the textbook "{textbook_name}", provide detailed answers for the following questions:\n\n{questions}'
    return llm.generate(_with_context(prompt, context), model_config)


def generate_question_paper(textbook_name: str, syllabus: str, model_config: ModelConfig = "balanced", context: str = "") -> str:
    prompt = (
        f'Based on the textbook "{textbook_name}" and the syllabus "{syllabus}", generate a comprehensive question paper. '
        "Include a mix of short-answer, long-answer, and multiple-choice questions. Format it like a real exam paper."
    )
    return llm.generate(_with_context(prompt, context), model_config)


def generate_study_plan(goal: str, syllabus: str, timeframe: str, textbook_name: str, model_config: ModelConfig = "balanced") -> str:
    """Build a day-by-day plan that points the student at the app's own activities."""
    prompt = f"""Create a day-by-day study plan for the textbook "{textbook_name}".
    Goal: {goal}
    Syllabus: {syllabus}
    Timeframe: {timeframe}

    The plan should be structured and actionable. For each day, suggest specific activities a student can do using an app with the following features: {APP_FEATURES}. Format the output clearly with headings for each day."""
    logger.debug("generate_study_plan: timeframe=%r", timeframe)
    return llm.generate(prompt, model_config)
