"""
Turning model replies into questions, flash cards and verdicts.
"""

import csv
import io

from studypal.flashcards_engine import parse_flashcards, to_csv_quizlet, to_markdown
from studypal.quiz_engine import (
    GRAMMAR_PREFERENCES,
    NO_GRAMMAR,
    build_quiz_prompt,
    explanation_text,
    is_correct_verdict,
    parse_quiz_questions,
    score_band,
    score_summary,
)


def test_questions_from_json_object():
    text = '{"questions": ["What is osmosis?", "  Define ATP. ", ""]}'
    assert parse_quiz_questions(text) == ["What is osmosis?", "Define ATP."]


def test_questions_from_fenced_json_with_objects():
    text = '```json\n{"questions": [{"question": "What is a gene?"}, {"prompt": "Name a organelle."}]}\n```'
    assert parse_quiz_questions(text) == ["What is a gene?", "Name a organelle."]


def test_questions_from_json_embedded_in_prose():
    text = 'Sure! Here you go:\n["Q one?", "Q two?"]\nGood luck.'
    assert parse_quiz_questions(text) == ["Q one?", "Q two?"]


def test_questions_from_numbered_lines():
    text = "Here are your questions:\n1. What is mitosis?\n2) **What is meiosis?**\n- Why do cells divide?\n"
    assert parse_quiz_questions(text) == ["What is mitosis?", "What is meiosis?", "Why do cells divide?"]


def test_unparseable_reply_gives_no_questions():
    assert parse_quiz_questions("") == []
    assert parse_quiz_questions("I cannot help with that.") == []


def test_quiz_prompt_mentions_syllabus_and_grammar():
    prompt = build_quiz_prompt("Genki I", "Lesson 3", "Full Grammar")
    assert "Genki I" in prompt and "Lesson 3" in prompt
    assert "grammar concepts" in prompt
    assert "grammar" not in build_quiz_prompt("Genki I", "", NO_GRAMMAR).split("Return JSON")[0]
    assert set(GRAMMAR_PREFERENCES) == {"Full Grammar", "Mixed Review", "No Grammar"}


def test_verdict_parsing():
    assert is_correct_verdict("Correct. Well done.")
    assert is_correct_verdict("  **Correct!** The answer is right.")
    assert is_correct_verdict("correct")
    assert not is_correct_verdict("Incorrect. The answer is 4.")
    assert not is_correct_verdict("")
    assert not is_correct_verdict("Partially correct.")


def test_explanation_drops_the_verdict():
    assert explanation_text("Incorrect. The answer is 4.") == "The answer is 4."
    assert explanation_text("**Correct!** Well reasoned.") == "Well reasoned."
    assert explanation_text("incorrect - mitosis makes two cells") == "mitosis makes two cells"
    assert explanation_text("Correctly named, but the date is wrong.") == "Correctly named, but the date is wrong."
    assert explanation_text("Incorrect.") == "Incorrect."


def test_flashcards_from_json():
    text = '{"flashcards": [{"term": "Cell", "definition": "Basic unit of life"}, {"front": "ATP", "back": "Energy currency"}]}'
    assert parse_flashcards(text) == [
        {"term": "Cell", "definition": "Basic unit of life"},
        {"term": "ATP", "definition": "Energy currency"},
    ]


def test_flashcards_drop_empty_and_duplicate_terms():
    text = '[{"term": "Cell", "definition": "a"}, {"term": "cell", "definition": "b"}, {"term": "", "definition": "c"}, {"term": "DNA", "definition": ""}]'
    assert parse_flashcards(text) == [{"term": "Cell", "definition": "a"}]


def test_json_reply_without_cards_gives_no_cards():
    assert parse_flashcards('{"flashcards": []}') == []
    pretty = '{\n  "flashcards": [\n    {"term": "", "definition": "Unit of life"}\n  ]\n}'
    assert parse_flashcards(pretty) == []


def test_null_fields_are_treated_as_missing():
    assert parse_flashcards('{"flashcards": [{"term": null, "definition": "x"}]}') == []
    assert parse_flashcards('{"flashcards": [{"term": "Cell", "definition": null, "back": "Unit"}]}') == [
        {"term": "Cell", "definition": "Unit"}
    ]


def test_flashcards_from_lines():
    text = "1. **Osmosis**: Diffusion of water across a membrane\n- Enzyme - A biological catalyst\nnoise line"
    assert parse_flashcards(text) == [
        {"term": "Osmosis", "definition": "Diffusion of water across a membrane"},
        {"term": "Enzyme", "definition": "A biological catalyst"},
    ]


def test_quizlet_csv_export():
    cards = [{"term": "Cell", "definition": "Unit of life, smallest"}]
    rows = list(csv.reader(io.StringIO(to_csv_quizlet(cards))))
    assert rows == [["Term", "Definition"], ["Cell", "Unit of life, smallest"]]


def test_markdown_export():
    md = to_markdown([{"term": "Cell", "definition": "Unit of life"}], title="Biology")
    assert md == "# Biology\n- **Cell**: Unit of life"


def test_score_summary_bands():
    assert score_summary(0, 0)["percent"] == 0.0
    assert score_band(2, 10).startswith("Needs revision")
    assert score_band(6, 10).startswith("Fair progress")
    summary = score_summary(9, 10)
    assert summary["percent"] == 90.0
    assert summary["band"].startswith("Good progress")
