from __future__ import annotations

import csv
import io
import json
import logging
import re
from typing import Any, List, TypedDict

from . import llm
from .llm import ModelConfig
from .performance_config import FLASHCARDS_MAX, FLASHCARDS_MIN
from .quiz_engine import _safe_json_loads

logger = logging.getLogger(__name__)


class Flashcard(TypedDict):
    term: str
    definition: str


SYS_PROMPT = (
    "You generate study flash cards. Each card pairs one key term from the textbook with a precise, "
    "self-contained definition. Do NOT ask about formatting, pages, lines or chapter numbers.\n"
    "Return STRICT JSON only with this schema: {\n"
    "  \"flashcards\": [ { \"term\": \"...\", \"definition\": \"...\" } ]\n"
    "}"
)

_TERM_LINE = re.compile(
    r"^\s*(?:\d{1,2}[\.\)]\s*|[-*•]\s*)?\**(?P<term>[^:\n]{1,80}?)\**\s*(?::|\s[-–—]\s)\s*(?P<definition>.+?)\s*$"
)


def _normalize_text(s: str) -> str:
    return " ".join((s or "").split()).strip("*").strip()


def _cards_from_json(data: Any) -> List[Flashcard]:
    items = data.get("flashcards", data.get("cards", [])) if isinstance(data, dict) else data
    if not isinstance(items, list):
        return []
    out: List[Flashcard] = []
    for c in items:
        if not isinstance(c, dict):
            continue
        term = c.get("term") or c.get("front") or ""
        definition = c.get("definition") or c.get("back") or ""
        out.append({"term": _normalize_text(str(term)), "definition": _normalize_text(str(definition))})
    return out


def _cards_from_lines(text: str) -> List[Flashcard]:
    out: List[Flashcard] = []
    for line in text.splitlines():
        m = _TERM_LINE.match(line)
        if m:
            out.append({"term": _normalize_text(m.group("term")), "definition": _normalize_text(m.group("definition"))})
    return out


def _clean(cards: List[Flashcard]) -> List[Flashcard]:
    clean: List[Flashcard] = []
    seen_terms: set[str] = set()
    for c in cards:
        if not c["term"] or not c["definition"]:
            continue
        key = c["term"].lower()
        if key in seen_terms:
            continue
        seen_terms.add(key)
        clean.append(c)
    return clean


def parse_flashcards(text: str) -> List[Flashcard]:
    """Extract term/definition pairs from a model reply.

    A reply that is valid JSON is read as JSON only, even when it holds no
    usable cards. Otherwise "Term: definition" or "Term - definition" lines
    are collected. Empty and duplicate terms are dropped.
    """
    if not text or not text.strip():
        return []
    try:
        data = _safe_json_loads(text)
    except (json.JSONDecodeError, ValueError):
        logger.warning("parse_flashcards: reply was not JSON; falling back to line extraction")
        return _clean(_cards_from_lines(text))
    return _clean(_cards_from_json(data))


def generate_flashcards(
    textbook_name: str,
    topic: str,
    model_config: ModelConfig = "balanced",
    context: str = "",
) -> List[Flashcard]:
    prompt = (
        f'Based on the textbook "{textbook_name}", generate a list of {FLASHCARDS_MIN} to {FLASHCARDS_MAX} '
        f'key terms and their definitions related to the topic: "{topic}".'
    )
    if context:
        prompt += f"\nSource material:\n---\n{context}\n---"
    text = llm.generate(prompt, model_config, system=SYS_PROMPT, json_mode=True)
    cards = parse_flashcards(text)
    logger.info("generate_flashcards: topic=%r -> %d cards", topic, len(cards))
    return cards[:FLASHCARDS_MAX]


def to_csv_quizlet(cards: List[Flashcard]) -> str:
    buf = io.StringIO()
    w = csv.writer(buf)
    w.writerow(["Term", "Definition"])
    for c in cards:
        w.writerow([c.get("term", "").strip(), c.get("definition", "").strip()])
    return buf.getvalue()


def to_markdown(cards: List[Flashcard], title: str = "Flash Cards") -> str:
    lines: List[str] = [f"# {title}"]
    for c in cards:
        lines.append(f"- **{c.get('term', '').strip()}**: {c.get('definition', '').strip()}")
    return "\n".join(lines)
