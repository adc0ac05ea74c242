"""Screen state machine for the study assistant.

All state lives in a mutable mapping: ``st.session_state`` when running under
Streamlit, a plain dict in tests. Only item access is used so both work.
Every transition resets the fields owned by the screens it leaves, so no
output from one activity is ever visible in another.
"""
from __future__ import annotations

import copy
import time
from enum import IntEnum
from typing import Any, Dict, List, MutableMapping, Optional

from .performance_config import ERROR_BANNER_SECONDS


class AppState(IntEnum):
    HOME = 0
    MENU = 1
    STUDY_PLAN = 2
    QUESTION_PAPER = 3
    QUIZ_SYLLABUS = 4
    GRAMMAR_OPTIONS = 5
    QUIZ = 6
    QUIZ_RESULTS = 7
    SUMMARY = 8
    ANSWERS = 9
    FLASHCARDS = 10
    AI_TUTOR = 11


Session = MutableMapping[str, Any]

MENU_ITEMS: List[Dict[str, Any]] = [
    {"title": "Make Question Paper", "description": "Generate a question paper based on a syllabus you provide.", "state": AppState.QUESTION_PAPER},
    {"title": "Quiz Me", "description": "Answer questions on key concepts and earn points.", "state": AppState.QUIZ_SYLLABUS},
    {"title": "Summarize a Topic", "description": "Get a brief summary of any topic.", "state": AppState.SUMMARY},
    {"title": "Get Answers for Questions", "description": "Input questions and receive detailed answers.", "state": AppState.ANSWERS},
    {"title": "Create Flashcards", "description": "Generate interactive flashcards for key terms.", "state": AppState.FLASHCARDS},
    {"title": "Explain Like I'm 5", "description": "Get a super-simple explanation of a complex topic.", "state": AppState.SUMMARY, "eli5": True},
    {"title": "Create My Study Plan", "description": "Get a day-by-day schedule to guide your learning.", "state": AppState.STUDY_PLAN},
]

# Fields owned by the single-input feature screens and the study plan form
FEATURE_DEFAULTS: Dict[str, Any] = {
    "generated_content": "",
    "flashcards": [],
    "flipped_cards": [],
    "feature_input": "",
    "feature_is_eli5": False,
    "study_plan_goal": "",
    "study_plan_syllabus": "",
    "study_plan_timeframe": "",
    "quiz_syllabus_input": "",
}

QUIZ_DEFAULTS: Dict[str, Any] = {
    "quiz_syllabus": "",
    "quiz_questions": [],
    "current_question_index": 0,
    "quiz_score": 0,
    "user_answer": "",
    "feedback": None,
    "is_answer_evaluated": False,
    "incorrect_answers": [],
    "show_incorrect_review": False,
}

TUTOR_DEFAULTS: Dict[str, Any] = {
    "tutor_chat": None,
    "chat_history": [],
}

SOURCE_DEFAULTS: Dict[str, Any] = {
    "source_index": None,
    "source_name": "",
}

SESSION_DEFAULTS: Dict[str, Any] = {
    "app_state": AppState.HOME,
    "previous_app_state": AppState.HOME,
    "textbook_name": "",
    "model_config": "balanced",
    "use_web_search": False,
    "error": None,
    "error_expires_at": 0.0,
    **FEATURE_DEFAULTS,
    **QUIZ_DEFAULTS,
    **TUTOR_DEFAULTS,
    **SOURCE_DEFAULTS,
}


# Session fields that double as widget keys in the UI
WIDGET_KEYS = (
    "model_config",
    "use_web_search",
    "feature_input",
    "feature_is_eli5",
    "study_plan_goal",
    "study_plan_syllabus",
    "study_plan_timeframe",
    "quiz_syllabus_input",
    "user_answer",
)


def _apply(ss: Session, defaults: Dict[str, Any]) -> None:
    # deepcopy so no two sessions share a default list
    for key, value in defaults.items():
        ss[key] = copy.deepcopy(value)


def ensure_session_initialized(ss: Session) -> None:
    """Add any missing keys. Existing values are left alone so reruns never reset state."""
    for key, value in SESSION_DEFAULTS.items():
        if key not in ss:
            ss[key] = copy.deepcopy(value)


def keep_widget_values(ss: Session) -> None:
    """Re-own widget-backed fields at the start of a run.

    Streamlit drops a keyed widget's value on any run where the widget is not
    drawn; writing it back first keeps it as plain session state.
    """
    for key in WIDGET_KEYS:
        if key in ss:
            ss[key] = ss[key]


# ---- Error banner -------------------------------------------------------

def set_error(ss: Session, message: str, now: Optional[float] = None) -> None:
    ss["error"] = message
    ss["error_expires_at"] = (time.time() if now is None else now) + ERROR_BANNER_SECONDS


def clear_error(ss: Session) -> None:
    ss["error"] = None
    ss["error_expires_at"] = 0.0


def current_error(ss: Session, now: Optional[float] = None) -> Optional[str]:
    message = ss.get("error")
    if not message:
        return None
    if (time.time() if now is None else now) >= ss.get("error_expires_at", 0.0):
        clear_error(ss)
        return None
    return message


# ---- Transitions --------------------------------------------------------

def navigate_to(ss: Session, state: AppState, is_eli5: bool = False) -> None:
    """Open a screen from the menu with every feature field reset."""
    _apply(ss, FEATURE_DEFAULTS)
    ss["feature_is_eli5"] = is_eli5
    clear_error(ss)
    ss["app_state"] = state


def reset_to_menu(ss: Session) -> None:
    ss["app_state"] = AppState.MENU
    ss["generated_content"] = ""
    ss["flashcards"] = []
    ss["flipped_cards"] = []
    clear_error(ss)


def back_to_quiz_syllabus(ss: Session) -> None:
    # Restore what the user typed before continuing to the grammar choice
    ss["quiz_syllabus_input"] = ss.get("quiz_syllabus", "")
    ss["app_state"] = AppState.QUIZ_SYLLABUS


def return_home(ss: Session) -> None:
    """Drop everything tied to the current textbook and show the start screen."""
    _apply(ss, FEATURE_DEFAULTS)
    _apply(ss, QUIZ_DEFAULTS)
    _apply(ss, TUTOR_DEFAULTS)
    _apply(ss, SOURCE_DEFAULTS)
    clear_error(ss)
    ss["textbook_name"] = ""
    ss["previous_app_state"] = AppState.HOME
    ss["app_state"] = AppState.HOME


def reset_quiz_state(ss: Session, questions: List[str]) -> None:
    """Start a fresh quiz over `questions`; the syllabus it was generated from is kept."""
    syllabus = ss.get("quiz_syllabus", "")
    _apply(ss, QUIZ_DEFAULTS)
    ss["quiz_syllabus"] = syllabus
    ss["quiz_questions"] = list(questions)


def current_question(ss: Session) -> Optional[str]:
    questions = ss.get("quiz_questions") or []
    idx = ss.get("current_question_index", 0)
    if 0 <= idx < len(questions):
        return questions[idx]
    return None


def is_last_question(ss: Session) -> bool:
    return ss.get("current_question_index", 0) >= len(ss.get("quiz_questions") or []) - 1


def toggle_flashcard(ss: Session, index: int) -> None:
    flipped = list(ss.get("flipped_cards") or [])
    if index in flipped:
        flipped.remove(index)
    else:
        flipped.append(index)
    ss["flipped_cards"] = flipped


# ---- Presentation predicates ---------------------------------------------

def shows_score(state: AppState) -> bool:
    return state in (AppState.QUIZ, AppState.QUIZ_RESULTS)


def shows_header(state: AppState) -> bool:
    return state not in (AppState.HOME, AppState.AI_TUTOR)


def shows_tutor_button(state: AppState) -> bool:
    return state not in (AppState.HOME, AppState.AI_TUTOR)
