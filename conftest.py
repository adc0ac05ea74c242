import pytest

from studypal.session import AppState, ensure_session_initialized


@pytest.fixture
def ss():
    """A fresh session with a verified textbook, sitting on the menu."""
    state = {}
    ensure_session_initialized(state)
    state["textbook_name"] = "Campbell Biology"
    state["app_state"] = AppState.MENU
    return state


class FakeChat:
    """Stands in for TutorChat: yields the given chunks, then optionally raises."""

    def __init__(self, chunks, error=None):
        self.chunks = list(chunks)
        self.error = error
        self.sent = []

    def stream_reply(self, text):
        self.sent.append(text)
        for chunk in self.chunks:
            yield chunk
        if self.error is not None:
            raise self.error


@pytest.fixture
def fake_chat():
    return FakeChat
