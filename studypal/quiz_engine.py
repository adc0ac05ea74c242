from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, List, TypedDict

from . import llm
from .llm import ModelConfig
from .performance_config import QUIZ_QUESTION_COUNT

logger = logging.getLogger(__name__)


# ---- Types ---------------------------------------------------------------
class IncorrectAnswer(TypedDict):
    question: str
    user_answer: str
    correct_answer_explanation: str


FULL_GRAMMAR = "Full Grammar"
MIXED_REVIEW = "Mixed Review"
NO_GRAMMAR = "No Grammar"
GRAMMAR_PREFERENCES = {
    FULL_GRAMMAR: "Focus heavily on grammar rules and concepts.",
    MIXED_REVIEW: "A balanced mix of grammar and vocabulary/comprehension.",
    NO_GRAMMAR: "Avoid specific grammar questions.",
}


# ---- Helpers ------------------------------------------------------------

_FENCE = re.compile(r"^```[a-zA-Z]*\s*|\s*```$")
_LIST_ITEM = re.compile(r"^\s*(?:\(?\d{1,2}[\.\):]|[-*•])\s+(?P<body>.+?)\s*$")
_VERDICT_NOISE = re.compile(r"^[\s*_#>`\"']+")
_LEADING_VERDICT = re.compile(r"^[\s*_#>]*(?:incorrect|correct)\b[\s*_!.:-]*", re.IGNORECASE)


def _safe_json_loads(payload: str) -> Any:
    """Parse JSON safely; if it fails, try to extract the first JSON object or array or raise."""
    text = _FENCE.sub("", payload.strip())
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        # naive recovery: find the outermost brackets and try again
        for open_ch, close_ch in (("{", "}"), ("[", "]")):
            start = text.find(open_ch)
            end = text.rfind(close_ch)
            if 0 <= start < end:
                try:
                    return json.loads(text[start : end + 1])
                except json.JSONDecodeError:
                    continue
        raise


def _questions_from_json(data: Any) -> List[str]:
    items = data.get("questions", []) if isinstance(data, dict) else data
    if not isinstance(items, list):
        return []
    out: List[str] = []
    for item in items:
        # Models occasionally wrap each question in an object
        if isinstance(item, dict):
            item = item.get("question") or item.get("prompt") or ""
        if isinstance(item, str) and item.strip():
            out.append(item.strip())
    return out


def _questions_from_lines(text: str) -> List[str]:
    out = []
    for line in text.splitlines():
        m = _LIST_ITEM.match(line)
        if m:
            body = m.group("body").strip().strip("*").strip()
            if body:
                out.append(body)
    return out


def parse_quiz_questions(text: str) -> List[str]:
    """Extract quiz questions from a model reply.

    Tries JSON first ({"questions": [...]} or a bare list), then numbered or
    bulleted lines. Returns [] when nothing usable is found.
    """
    if not text or not text.strip():
        return []
    try:
        questions = _questions_from_json(_safe_json_loads(text))
        if questions:
            return questions
    except (json.JSONDecodeError, ValueError):
        logger.warning("parse_quiz_questions: reply was not JSON; falling back to line extraction")
    return _questions_from_lines(text)


def build_quiz_prompt(textbook_name: str, syllabus: str, grammar_preference: str, context: str = "") -> str:
    prompt = f'Generate {QUIZ_QUESTION_COUNT} quiz questions based on the textbook "{textbook_name}".'
    if syllabus and syllabus.strip():
        prompt += f" Focus on these topics: {syllabus.strip()}."
    if grammar_preference != NO_GRAMMAR:
        focus = "grammar concepts" if grammar_preference == FULL_GRAMMAR else "a mix of grammar and general concepts"
        prompt += f" Include questions about {focus}."
    prompt += " The questions should cover key concepts."
    if context:
        prompt += f"\nSource material:\n---\n{context}\n---"
    prompt += '\nReturn JSON only, in the form {"questions": ["...", "..."]}.'
    return prompt


# ---- Public API ---------------------------------------------------------

def generate_quiz_questions(
    textbook_name: str,
    syllabus: str,
    grammar_preference: str = NO_GRAMMAR,
    model_config: ModelConfig = "balanced",
    context: str = "",
) -> List[str]:
    prompt = build_quiz_prompt(textbook_name, syllabus, grammar_preference, context)
    text = llm.generate(prompt, model_config, json_mode=True)
    questions = parse_quiz_questions(text)
    logger.info("generate_quiz_questions: grammar=%s -> %d questions", grammar_preference, len(questions))
    return questions


def evaluate_answer(
    question: str,
    answer: str,
    textbook_name: str,
    model_config: ModelConfig = "balanced",
    context: str = "",
) -> str:
    prompt = (
        f'Textbook: "{textbook_name}"\n'
        f'Question: "{question}"\n'
        f'User\'s Answer: "{answer}"\n'
    )
    if context:
        prompt += f"Source material:\n---\n{context}\n---\n"
    prompt += (
        '\nIs the user\'s answer correct? Start your response with the single word "Correct" or "Incorrect". '
        "Then, provide a brief but clear explanation for why the answer is right or wrong."
    )
    return llm.generate(prompt, model_config).strip()


def is_correct_verdict(evaluation: str) -> bool:
    """True when the grading reply opens with "Correct" (any case, markdown stripped)."""
    if not evaluation:
        return False
    return _VERDICT_NOISE.sub("", evaluation).lower().startswith("correct")


def explanation_text(evaluation: str) -> str:
    """The grading reply without its leading "Correct"/"Incorrect" verdict."""
    text = (evaluation or "").strip()
    return _LEADING_VERDICT.sub("", text, count=1).strip() or text


def score_band(score: int, total: int) -> str:
    percent = (100 * score / total) if total else 0.0
    if percent < 50:
        return "Needs revision: focus on foundational concepts and definitions."
    if percent < 80:
        return "Fair progress: keep practicing and revisit tricky areas."
    return "Good progress: you’re ready for more challenging, reasoning-based questions."


def incorrect_entry(question: str, user_answer: str, evaluation: str) -> IncorrectAnswer:
    return {
        "question": question,
        "user_answer": user_answer,
        "correct_answer_explanation": evaluation,
    }


def score_summary(score: int, total: int) -> Dict[str, Any]:
    percent = (100 * score / total) if total else 0.0
    return {"score": score, "total": total, "percent": percent, "band": score_band(score, total)}
