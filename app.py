import streamlit as st
import logging
import sys
import warnings

# Suppress warnings for better performance
warnings.filterwarnings("ignore", category=DeprecationWarning)
warnings.filterwarnings("ignore", category=UserWarning, module="streamlit")

from studypal import flows
from studypal.config import LOG_LEVEL
from studypal.flashcards_engine import to_csv_quizlet, to_markdown
from studypal.llm import MODEL_CONFIGS
from studypal.quiz_engine import GRAMMAR_PREFERENCES, explanation_text, is_correct_verdict, score_summary
from studypal.session import (
    MENU_ITEMS,
    AppState,
    back_to_quiz_syllabus,
    current_error,
    current_question,
    ensure_session_initialized,
    is_last_question,
    keep_widget_values,
    navigate_to,
    reset_to_menu,
    return_home,
    shows_header,
    shows_score,
    shows_tutor_button,
    toggle_flashcard,
)

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    stream=sys.stdout,
)
logger = logging.getLogger("studypal")

APP_TITLE = "StudyPal"
MODEL_LABELS = {
    "balanced": "Balanced (better answers)",
    "fastest": "Fastest (quicker replies)",
}


def _slug(text: str) -> str:
    return "".join(ch if ch.isalnum() else "_" for ch in text.strip().lower())[:40] or "studypal"


# ---- Shared pieces ------------------------------------------------------

def _render_brand_header() -> None:
    ss = st.session_state
    cols = st.columns([4, 1])
    with cols[0]:
        st.markdown(f"### 📚 {APP_TITLE}")
        if ss["textbook_name"]:
            st.caption(f"Studying: **{ss['textbook_name']}**")
    with cols[1]:
        if shows_score(ss["app_state"]):
            st.metric("Score", ss["quiz_score"])


def _render_error_banner() -> None:
    message = current_error(st.session_state)
    if message:
        st.error(message)


def _back_button(on_click=reset_to_menu, args=None, key: str = "back") -> None:
    st.button("← Back", on_click=on_click, args=args or (st.session_state,), key=key)


def _change_textbook(ss) -> None:
    return_home(ss)
    ss.pop("source_attempt", None)


def render_sidebar() -> None:
    ss = st.session_state
    with st.sidebar:
        st.markdown("### ⚙️ Settings")
        st.radio(
            "Model",
            MODEL_CONFIGS,
            format_func=lambda c: MODEL_LABELS.get(c, c),
            key="model_config",
        )

        if ss["app_state"] == AppState.HOME:
            return

        st.markdown("### 📄 Source material")
        st.checkbox(
            "Search the web for source material",
            key="use_web_search",
            help="Ground answers in passages found on the web. Slower; ignored when a PDF is loaded.",
        )
        uploaded = st.file_uploader("Upload a PDF of your textbook or notes", type=["pdf"], key="source_upload")
        if uploaded is not None:
            attempt = (uploaded.name, uploaded.size)
            if ss.get("source_attempt") != attempt:
                ss["source_attempt"] = attempt
                with st.spinner(f"Reading {uploaded.name}..."):
                    if flows.ingest_source_pdf(ss, uploaded.name, uploaded.getvalue()):
                        st.toast(f"Loaded {uploaded.name}", icon="✅")
        if ss["source_name"]:
            st.caption(f"Using **{ss['source_name']}** as source material.")
            st.button("Stop using this PDF", on_click=flows.clear_source, args=(ss,), key="clear_source")

        st.divider()
        if shows_tutor_button(ss["app_state"]):
            st.button("💬 Ask the AI Tutor", on_click=flows.open_tutor, args=(ss,), key="open_tutor")
        st.button("🔄 Change textbook", on_click=_change_textbook, args=(ss,), key="change_textbook")


def _render_generated_content(file_stem: str) -> None:
    ss = st.session_state
    if not ss["generated_content"]:
        return
    with st.container(border=True):
        st.markdown(ss["generated_content"])
    st.download_button(
        "⬇️ Download",
        data=ss["generated_content"],
        file_name=f"{file_stem}_{_slug(ss['textbook_name'])}.md",
        mime="text/markdown",
        key=f"download_{file_stem}",
    )


def _render_flashcards() -> None:
    ss = st.session_state
    cards = ss["flashcards"]
    if not cards:
        return
    st.caption("Click a card to flip it.")
    flipped = set(ss["flipped_cards"])
    cols = st.columns(3)
    for index, card in enumerate(cards):
        with cols[index % 3]:
            with st.container(border=True):
                if index in flipped:
                    st.caption("Definition")
                    st.write(card["definition"])
                else:
                    st.caption("Term")
                    st.markdown(f"**{card['term']}**")
                st.button("Flip", on_click=toggle_flashcard, args=(ss, index), key=f"flip_{index}")

    stem = f"flashcards_{_slug(ss['textbook_name'])}"
    dl_cols = st.columns(2)
    with dl_cols[0]:
        st.download_button("⬇️ CSV (Quizlet)", data=to_csv_quizlet(cards), file_name=f"{stem}.csv", mime="text/csv")
    with dl_cols[1]:
        st.download_button("⬇️ Markdown", data=to_markdown(cards, title=f"Flash Cards: {ss['textbook_name']}"),
                           file_name=f"{stem}.md", mime="text/markdown")


# ---- Screens ------------------------------------------------------------

def render_home() -> None:
    ss = st.session_state
    st.title(f"📚 {APP_TITLE}")
    st.write("Name the textbook you're studying and pick from quizzes, flashcards, summaries, a study plan and an AI tutor.")
    with st.form("home_form"):
        st.text_input("Textbook", placeholder="Enter your textbook's name...", key="textbook_name_input")
        submitted = st.form_submit_button("Start Studying")
    if submitted:
        ss["textbook_name"] = ss.get("textbook_name_input", "")
        with st.spinner("Verifying textbook..."):
            flows.start_studying(ss)
        st.rerun()


def render_menu() -> None:
    ss = st.session_state
    st.subheader("What would you like to do?")
    cols = st.columns(2)
    for i, item in enumerate(MENU_ITEMS):
        with cols[i % 2]:
            with st.container(border=True):
                st.markdown(f"**{item['title']}**")
                st.caption(item["description"])
                st.button(
                    "Open",
                    on_click=navigate_to,
                    args=(ss, item["state"], bool(item.get("eli5"))),
                    key=f"menu_{i}",
                )


def render_feature_screen(title: str, placeholder: str, button_text: str, file_stem: str,
                          eli5_option: bool = False, is_flashcard: bool = False) -> None:
    ss = st.session_state
    _back_button()
    st.subheader(title)
    st.text_area(title, placeholder=placeholder, height=120, key="feature_input", label_visibility="collapsed")
    if eli5_option:
        st.checkbox("Explain Like I'm 5", key="feature_is_eli5")
    if st.button(button_text, key="feature_submit"):
        with st.spinner("Generating response..."):
            flows.run_feature(ss)
        st.rerun()

    if is_flashcard:
        _render_flashcards()
    else:
        _render_generated_content(file_stem)


def render_study_plan() -> None:
    ss = st.session_state
    _back_button()
    st.subheader("Create My Study Plan")
    st.text_input("Your goal", placeholder="e.g., Ace the final exam", key="study_plan_goal")
    st.text_area("Syllabus", placeholder="e.g., Chapters 1-8", height=100, key="study_plan_syllabus")
    st.text_input("Timeframe", placeholder="e.g., 2 weeks", key="study_plan_timeframe")
    if st.button("Generate Plan", key="plan_submit"):
        with st.spinner("Building your study plan..."):
            flows.submit_study_plan(ss)
        st.rerun()
    _render_generated_content("study_plan")


def render_quiz_syllabus() -> None:
    ss = st.session_state
    _back_button()
    st.subheader("Quiz Me")
    st.write("Enter a syllabus to focus the quiz, or leave blank for a general review.")
    st.text_area("Syllabus", placeholder="e.g., Key concepts from Chapter 3", height=90,
                 key="quiz_syllabus_input", label_visibility="collapsed")
    if st.button("Continue", key="quiz_continue"):
        with st.spinner("Analyzing textbook type and generating quiz questions..."):
            flows.start_quiz_flow(ss, ss.get("quiz_syllabus_input", ""))
        st.rerun()


def render_grammar_options() -> None:
    ss = st.session_state
    _back_button(on_click=back_to_quiz_syllabus)
    st.subheader("Grammar Options")
    st.write("This looks like a language textbook. How should we handle grammar questions?")
    choice = None
    for preference, description in GRAMMAR_PREFERENCES.items():
        with st.container(border=True):
            st.markdown(f"**{preference}**")
            st.caption(description)
            if st.button("Choose", key=f"grammar_{_slug(preference)}"):
                choice = preference
    if choice:
        with st.spinner("Generating quiz questions..."):
            flows.generate_and_start_quiz(ss, choice)
        st.rerun()


def _render_incorrect_item(item) -> None:
    st.markdown(f"**Q:** {item['question']}")
    st.markdown(f":red[Your Answer: {item['user_answer'] or '(no answer)'}]")
    st.markdown(f"**Explanation:** :green[{explanation_text(item['correct_answer_explanation'])}]")


@st.dialog("Incorrect Answers")
def _incorrect_answers_dialog() -> None:
    for item in st.session_state["incorrect_answers"]:
        _render_incorrect_item(item)
        st.divider()


def _open_incorrect_review(ss) -> None:
    ss["show_incorrect_review"] = True


def render_quiz() -> None:
    ss = st.session_state
    questions = ss["quiz_questions"]
    question = current_question(ss)
    if question is None:
        st.write("Could not load questions.")
        return

    wrong = ss["incorrect_answers"]
    if wrong:
        st.button(f"Incorrect Answers ({len(wrong)})", on_click=_open_incorrect_review, args=(ss,), key="review_wrong")
    if ss["show_incorrect_review"]:
        ss["show_incorrect_review"] = False
        _incorrect_answers_dialog()

    st.caption(f"Question {ss['current_question_index'] + 1} of {len(questions)}")
    st.markdown(f"#### {question}")
    st.text_area("Your answer", placeholder="Your answer here...", height=140, key="user_answer",
                 disabled=ss["is_answer_evaluated"])

    feedback = ss["feedback"]
    if feedback:
        if is_correct_verdict(feedback):
            st.success(f"**Correct!**\n\n{feedback}")
        else:
            st.error(f"**Incorrect**\n\n{feedback}")

    if not ss["is_answer_evaluated"]:
        if st.button("Submit Answer", key="quiz_submit"):
            with st.spinner("Evaluating your answer..."):
                flows.submit_answer(ss)
            st.rerun()
    else:
        label = "Finish Quiz" if is_last_question(ss) else "Next Question"
        st.button(label, on_click=flows.next_question, args=(ss,), key="quiz_next")


def render_quiz_results() -> None:
    ss = st.session_state
    summary = score_summary(ss["quiz_score"], len(ss["quiz_questions"]))
    st.subheader("Quiz Complete!")
    st.success(f"Your final score is: {summary['score']} / {summary['total']} ({summary['percent']:.0f}%)")
    st.info(summary["band"])
    if ss["incorrect_answers"]:
        st.markdown("#### Review Incorrect Answers")
        for item in ss["incorrect_answers"]:
            with st.container(border=True):
                _render_incorrect_item(item)
    st.button("Back to Menu", on_click=reset_to_menu, args=(ss,), key="results_menu")


def render_tutor() -> None:
    ss = st.session_state
    cols = st.columns([5, 1])
    with cols[0]:
        st.subheader("💬 AI Tutor")
        st.caption(f"Ask anything about **{ss['textbook_name']}**.")
    with cols[1]:
        st.button("✕ Close", on_click=flows.close_tutor, args=(ss,), key="close_tutor")

    for msg in ss["chat_history"]:
        with st.chat_message("user" if msg["role"] == "user" else "assistant"):
            st.markdown(msg["text"])

    prompt = st.chat_input("Ask your tutor anything...")
    if prompt:
        with st.chat_message("user"):
            st.markdown(prompt)
        with st.chat_message("assistant"):
            st.write_stream(flows.send_tutor_message(ss, prompt))
        st.rerun()


SCREENS = {
    AppState.HOME: render_home,
    AppState.MENU: render_menu,
    AppState.STUDY_PLAN: render_study_plan,
    AppState.QUESTION_PAPER: lambda: render_feature_screen(
        "Make Question Paper", "Enter syllabus (e.g., chapters 1-5)...", "Generate Paper", "question_paper"),
    AppState.QUIZ_SYLLABUS: render_quiz_syllabus,
    AppState.GRAMMAR_OPTIONS: render_grammar_options,
    AppState.QUIZ: render_quiz,
    AppState.QUIZ_RESULTS: render_quiz_results,
    AppState.SUMMARY: lambda: render_feature_screen(
        "Summarize a Topic", "Enter a topic to summarize...", "Summarize", "summary", eli5_option=True),
    AppState.ANSWERS: lambda: render_feature_screen(
        "Get Answers for Questions", "Enter one or more questions, each on a new line...", "Get Answers", "answers"),
    AppState.FLASHCARDS: lambda: render_feature_screen(
        "Create Flashcards", "Enter a topic for flashcards...", "Create Flashcards", "flashcards", is_flashcard=True),
    AppState.AI_TUTOR: render_tutor,
}


def main():
    st.set_page_config(page_title=APP_TITLE, page_icon="📚", layout="wide")
    ensure_session_initialized(st.session_state)
    keep_widget_values(st.session_state)

    # Hide Streamlit toolbar (Deploy), hamburger menu, and footer
    st.markdown(
        """
        <style>
        [data-testid="stToolbar"] { display: none !important; }
        #MainMenu { visibility: hidden; }
        footer { visibility: hidden; }
        </style>
        """,
        unsafe_allow_html=True,
    )

    render_sidebar()
    state = st.session_state["app_state"]
    if shows_header(state):
        _render_brand_header()
    _render_error_banner()

    screen = SCREENS.get(state)
    if screen is None:
        logger.error("Unknown app state: %r", state)
        st.write("Error: Unknown app state.")
        return
    screen()


if __name__ == "__main__":
    main()
