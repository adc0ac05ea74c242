"""
Single-input feature screens, the study plan form and source material.
"""

from studypal import flashcards_engine, flows, ingest, retriever, summary_engine, textbook_engine
from studypal.llm import QUOTA_MESSAGE, QuotaExceededError
from studypal.session import AppState, navigate_to


def test_blank_input_is_rejected(ss, monkeypatch):
    monkeypatch.setattr(summary_engine, "summarize_topic", lambda *a, **k: "should not run")
    navigate_to(ss, AppState.SUMMARY)
    ss["feature_input"] = "  "
    flows.run_feature(ss)
    assert ss["error"] == "Please provide some input."
    assert ss["generated_content"] == ""


def test_eli5_summary(ss, monkeypatch):
    seen = {}

    def fake_summary(name, topic, eli5, cfg, context=""):
        seen.update(name=name, topic=topic, eli5=eli5)
        return "Plants eat sunlight."

    monkeypatch.setattr(summary_engine, "summarize_topic", fake_summary)
    navigate_to(ss, AppState.SUMMARY, is_eli5=True)
    ss["feature_input"] = "Photosynthesis"
    flows.run_feature(ss)

    assert ss["generated_content"] == "Plants eat sunlight."
    assert seen == {"name": "Campbell Biology", "topic": "Photosynthesis", "eli5": True}


def test_answers_and_question_paper(ss, monkeypatch):
    monkeypatch.setattr(summary_engine, "get_answers", lambda name, q, cfg, context="": f"answers for {q}")
    monkeypatch.setattr(summary_engine, "generate_question_paper", lambda name, s, cfg, context="": f"paper on {s}")

    navigate_to(ss, AppState.ANSWERS)
    ss["feature_input"] = "What is DNA?"
    flows.run_feature(ss)
    assert ss["generated_content"] == "answers for What is DNA?"

    navigate_to(ss, AppState.QUESTION_PAPER)
    ss["feature_input"] = "Chapters 1-5"
    flows.run_feature(ss)
    assert ss["generated_content"] == "paper on Chapters 1-5"


def test_flashcards_replace_previous_set(ss, monkeypatch):
    cards = [{"term": "Cell", "definition": "Unit of life"}]
    monkeypatch.setattr(flashcards_engine, "generate_flashcards", lambda *a, **k: cards)
    navigate_to(ss, AppState.FLASHCARDS)
    ss["flipped_cards"] = [3]
    ss["feature_input"] = "Cells"
    flows.run_feature(ss)
    assert ss["flashcards"] == cards
    assert ss["flipped_cards"] == []
    assert ss["error"] is None


def test_no_flashcards_is_reported(ss, monkeypatch):
    monkeypatch.setattr(flashcards_engine, "generate_flashcards", lambda *a, **k: [])
    navigate_to(ss, AppState.FLASHCARDS)
    ss["feature_input"] = "Cells"
    flows.run_feature(ss)
    assert ss["flashcards"] == []
    assert ss["error"] == "Could not create flashcards for that topic."


def test_feature_errors(ss, monkeypatch):
    navigate_to(ss, AppState.SUMMARY)
    ss["feature_input"] = "Cells"

    def boom(*a, **k):
        raise RuntimeError("500")

    monkeypatch.setattr(summary_engine, "summarize_topic", boom)
    flows.run_feature(ss)
    assert ss["error"] == flows.GENERIC_FEATURE_ERROR

    def quota(*a, **k):
        raise QuotaExceededError()

    monkeypatch.setattr(summary_engine, "summarize_topic", quota)
    flows.run_feature(ss)
    assert ss["error"] == QUOTA_MESSAGE


def test_study_plan_needs_every_field(ss, monkeypatch):
    monkeypatch.setattr(summary_engine, "generate_study_plan", lambda *a, **k: "Day 1: read")
    navigate_to(ss, AppState.STUDY_PLAN)
    ss["study_plan_goal"] = "Pass the exam"
    ss["study_plan_syllabus"] = "Ch 1-3"
    flows.submit_study_plan(ss)
    assert ss["error"] == "Please fill all fields."
    assert ss["generated_content"] == ""

    ss["study_plan_timeframe"] = "1 week"
    flows.submit_study_plan(ss)
    assert ss["generated_content"] == "Day 1: read"
    assert ss["error"] is None


def test_study_plan_failure(ss, monkeypatch):
    def boom(*a, **k):
        raise RuntimeError("bad gateway")

    monkeypatch.setattr(summary_engine, "generate_study_plan", boom)
    ss.update(study_plan_goal="g", study_plan_syllabus="s", study_plan_timeframe="t")
    flows.submit_study_plan(ss)
    assert ss["error"] == "Failed to generate the study plan."


# ---- source material ----

def test_uploaded_pdf_grounds_features(ss, monkeypatch):
    index = object()
    monkeypatch.setattr(ingest, "extract_pdf_text", lambda data: "Cells are small.")
    monkeypatch.setattr(ingest, "chunk_text", lambda text, source: ["chunk"])
    monkeypatch.setattr(retriever, "build_source_index", lambda chunks: index)
    monkeypatch.setattr(retriever, "retrieve_context", lambda idx, query: "Cells are small." if idx is index else "")
    seen = {}
    monkeypatch.setattr(
        summary_engine, "summarize_topic",
        lambda name, topic, eli5, cfg, context="": seen.setdefault("context", context) or "summary",
    )

    assert flows.ingest_source_pdf(ss, "notes.pdf", b"%PDF") is True
    assert ss["source_name"] == "notes.pdf"

    navigate_to(ss, AppState.SUMMARY)
    ss["feature_input"] = "Cells"
    flows.run_feature(ss)
    assert seen["context"] == "Cells are small."

    flows.clear_source(ss)
    assert ss["source_index"] is None
    assert flows.source_context(ss, "Cells") == ""


def test_unreadable_pdf(ss, monkeypatch):
    def bad(data):
        raise ValueError("PDF contains no extractable text.")

    monkeypatch.setattr(ingest, "extract_pdf_text", bad)
    assert flows.ingest_source_pdf(ss, "scan.pdf", b"...") is False
    assert ss["error"] == "Could not read that PDF."
    assert ss["source_index"] is None


def test_web_search_source_is_optional(ss, monkeypatch):
    monkeypatch.setattr(textbook_engine, "find_source_material", lambda name, topic, cfg: f"web notes on {topic}")
    assert flows.source_context(ss, "Cells") == ""

    ss["use_web_search"] = True
    assert flows.source_context(ss, "Cells") == "web notes on Cells"

    def down(*a, **k):
        raise RuntimeError("search unavailable")

    monkeypatch.setattr(textbook_engine, "find_source_material", down)
    assert flows.source_context(ss, "Cells") == ""
    assert ss["error"] is None


def test_uploaded_pdf_wins_over_web_search(ss, monkeypatch):
    searched = []
    monkeypatch.setattr(textbook_engine, "find_source_material", lambda *a: searched.append(a) or "web text")
    monkeypatch.setattr(retriever, "retrieve_context", lambda idx, query: "pdf text")
    ss["source_index"] = object()
    ss["use_web_search"] = True
    assert flows.source_context(ss, "Cells") == "pdf text"
    assert searched == []


def test_web_source_material_is_capped(monkeypatch):
    from studypal import llm
    from studypal.performance_config import MAX_SOURCE_CHARS

    calls = []

    def fake_generate(prompt, cfg="balanced", **kwargs):
        calls.append(kwargs)
        return "  " + "x" * (MAX_SOURCE_CHARS + 500)

    monkeypatch.setattr(llm, "generate", fake_generate)
    text = textbook_engine.find_source_material("Campbell Biology", "Cells")
    assert len(text) == MAX_SOURCE_CHARS
    assert set(text) == {"x"}
    assert calls == [{"web_search": True}]
