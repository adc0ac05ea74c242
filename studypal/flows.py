"""User actions: each reads its inputs from session state, calls one engine and
writes the outcome back, turning failures into a banner message."""
from __future__ import annotations

import logging
from typing import Iterator

from . import flashcards_engine, ingest, quiz_engine, retriever, summary_engine, textbook_engine, tutor
from .llm import QUOTA_MESSAGE, is_quota_error
from .session import (
    AppState,
    Session,
    clear_error,
    current_question,
    is_last_question,
    reset_quiz_state,
    set_error,
)

logger = logging.getLogger(__name__)

GENERIC_FEATURE_ERROR = "An error occurred while generating content."
TUTOR_ERROR = "Sorry, the tutor is having trouble responding right now."


def _report(ss: Session, error: BaseException, message: str, what: str) -> None:
    """Put the right banner up for a failed backend call. Call from an except block."""
    if is_quota_error(error):
        logger.warning("%s: backend quota exhausted", what)
        set_error(ss, QUOTA_MESSAGE)
    else:
        logger.exception("Error %s", what)
        set_error(ss, message)


def _textbook(ss: Session) -> str:
    return (ss.get("textbook_name") or "").strip()


def _model_config(ss: Session) -> str:
    return ss.get("model_config") or "balanced"


# ---- Source material ----------------------------------------------------

def source_context(ss: Session, query: str) -> str:
    """Grounding text for `query`: the uploaded PDF first, then web search when enabled."""
    if ss.get("source_index") is not None:
        return retriever.retrieve_context(ss["source_index"], query)
    if ss.get("use_web_search") and _textbook(ss) and (query or "").strip():
        try:
            return textbook_engine.find_source_material(_textbook(ss), query, _model_config(ss))
        except Exception:
            logger.warning("source_context: web search failed; continuing without source material", exc_info=True)
    return ""


def ingest_source_pdf(ss: Session, filename: str, data: bytes) -> bool:
    try:
        text = ingest.extract_pdf_text(data)
        index = retriever.build_source_index(ingest.chunk_text(text, filename))
    except Exception as e:
        _report(ss, e, "Could not read that PDF.", f"ingesting {filename}")
        return False
    ss["source_index"] = index
    ss["source_name"] = filename
    logger.info("ingest_source_pdf: indexed %s", filename)
    return True


def clear_source(ss: Session) -> None:
    ss["source_index"] = None
    ss["source_name"] = ""


# ---- Home ---------------------------------------------------------------

def start_studying(ss: Session) -> bool:
    name = _textbook(ss)
    if not name:
        set_error(ss, "Please enter a textbook name.")
        return False
    clear_error(ss)
    try:
        exists = textbook_engine.research_textbook(name, _model_config(ss))
    except Exception as e:
        _report(ss, e, "An error occurred while verifying the textbook.", "verifying textbook")
        return False
    if not exists:
        set_error(ss, f'Could not verify the textbook "{name}". Please check the name.')
        return False
    ss["textbook_name"] = name
    ss["app_state"] = AppState.MENU
    return True


# ---- Quiz ---------------------------------------------------------------

def start_quiz_flow(ss: Session, syllabus: str) -> None:
    """Pick the grammar step for language textbooks, otherwise go straight to the quiz."""
    ss["quiz_syllabus"] = (syllabus or "").strip()
    try:
        is_language = textbook_engine.is_language_textbook(_textbook(ss), _model_config(ss))
    except Exception as e:
        _report(ss, e, "Failed to analyze the textbook type.", "analyzing textbook type")
        ss["app_state"] = AppState.MENU
        return
    if is_language:
        ss["app_state"] = AppState.GRAMMAR_OPTIONS
        return
    generate_and_start_quiz(ss, quiz_engine.NO_GRAMMAR)


def generate_and_start_quiz(ss: Session, grammar_preference: str) -> bool:
    syllabus = ss.get("quiz_syllabus", "")
    context = source_context(ss, syllabus or _textbook(ss))
    try:
        questions = quiz_engine.generate_quiz_questions(
            _textbook(ss), syllabus, grammar_preference, _model_config(ss), context=context
        )
    except Exception as e:
        _report(ss, e, "Could not generate quiz questions.", "generating quiz")
        ss["app_state"] = AppState.MENU
        return False
    if not questions:
        set_error(ss, "Could not generate quiz questions.")
        ss["app_state"] = AppState.MENU
        return False
    reset_quiz_state(ss, questions)
    ss["app_state"] = AppState.QUIZ
    return True


def submit_answer(ss: Session) -> None:
    """Grade the current answer once; the verdict decides score versus incorrect log."""
    if ss.get("is_answer_evaluated"):
        return
    question = current_question(ss)
    if question is None:
        return
    answer = ss.get("user_answer", "")
    context = source_context(ss, question)
    try:
        evaluation = quiz_engine.evaluate_answer(question, answer, _textbook(ss), _model_config(ss), context=context)
    except Exception as e:
        _report(ss, e, "Failed to evaluate your answer.", "evaluating answer")
        return
    ss["feedback"] = evaluation
    if quiz_engine.is_correct_verdict(evaluation):
        ss["quiz_score"] = ss.get("quiz_score", 0) + 1
    else:
        ss["incorrect_answers"] = list(ss.get("incorrect_answers") or []) + [
            quiz_engine.incorrect_entry(question, answer, evaluation)
        ]
    ss["is_answer_evaluated"] = True


def next_question(ss: Session) -> None:
    if is_last_question(ss):
        ss["app_state"] = AppState.QUIZ_RESULTS
        return
    ss["current_question_index"] = ss.get("current_question_index", 0) + 1
    ss["user_answer"] = ""
    ss["feedback"] = None
    ss["is_answer_evaluated"] = False


# ---- Tutor --------------------------------------------------------------

def open_tutor(ss: Session) -> None:
    if ss.get("app_state") == AppState.AI_TUTOR:
        return
    if ss.get("tutor_chat") is None:
        ss["tutor_chat"] = tutor.start_tutor_chat(_textbook(ss), _model_config(ss))
    ss["previous_app_state"] = ss.get("app_state", AppState.HOME)
    ss["app_state"] = AppState.AI_TUTOR


def close_tutor(ss: Session) -> None:
    ss["app_state"] = ss.get("previous_app_state", AppState.HOME)


def send_tutor_message(ss: Session, text: str) -> Iterator[str]:
    """Send `text` to the tutor and yield the reply as it streams in.

    The chat log gets the user message plus a model bubble that grows with
    every chunk.
    """
    chat = ss.get("tutor_chat")
    if not (text or "").strip() or chat is None:
        return
    ss["chat_history"] = list(ss.get("chat_history") or []) + [
        {"role": "user", "text": text},
        {"role": "model", "text": ""},
    ]
    bubble = ss["chat_history"][-1]
    try:
        for chunk in chat.stream_reply(text):
            bubble["text"] += chunk
            yield chunk
    except Exception as e:
        if is_quota_error(e):
            if bubble["text"] == "":
                bubble["text"] = QUOTA_MESSAGE
            else:
                ss["chat_history"].append({"role": "model", "text": QUOTA_MESSAGE})
            set_error(ss, QUOTA_MESSAGE)
        else:
            logger.exception("AI Tutor error")
            if bubble["text"] == "" and ss["chat_history"][-1] is bubble:
                ss["chat_history"].pop()
            set_error(ss, TUTOR_ERROR)


# ---- Feature screens ----------------------------------------------------

def run_feature(ss: Session) -> None:
    """Submit the single-input form of the current feature screen."""
    state = ss.get("app_state")
    text = ss.get("feature_input", "")
    if not (text or "").strip():
        set_error(ss, "Please provide some input.")
        return
    ss["generated_content"] = ""
    ss["flashcards"] = []
    ss["flipped_cards"] = []
    clear_error(ss)

    name, cfg = _textbook(ss), _model_config(ss)
    context = source_context(ss, text)
    try:
        if state == AppState.FLASHCARDS:
            cards = flashcards_engine.generate_flashcards(name, text, cfg, context=context)
            if not cards:
                set_error(ss, "Could not create flashcards for that topic.")
            ss["flashcards"] = cards
        elif state == AppState.SUMMARY:
            ss["generated_content"] = summary_engine.summarize_topic(
                name, text, bool(ss.get("feature_is_eli5")), cfg, context=context
            )
        elif state == AppState.ANSWERS:
            ss["generated_content"] = summary_engine.get_answers(name, text, cfg, context=context)
        elif state == AppState.QUESTION_PAPER:
            ss["generated_content"] = summary_engine.generate_question_paper(name, text, cfg, context=context)
        else:
            logger.warning("run_feature: %s has no feature form", state)
    except Exception as e:
        _report(ss, e, GENERIC_FEATURE_ERROR, "generating content")


def submit_study_plan(ss: Session) -> None:
    goal = (ss.get("study_plan_goal") or "").strip()
    syllabus = (ss.get("study_plan_syllabus") or "").strip()
    timeframe = (ss.get("study_plan_timeframe") or "").strip()
    if not goal or not syllabus or not timeframe:
        set_error(ss, "Please fill all fields.")
        return
    ss["generated_content"] = ""
    clear_error(ss)
    try:
        ss["generated_content"] = summary_engine.generate_study_plan(
            goal, syllabus, timeframe, _textbook(ss), _model_config(ss)
        )
    except Exception as e:
        _report(ss, e, "Failed to generate the study plan.", "generating study plan")
