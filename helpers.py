import logging
from typing import Dict, List

import streamlit as st

from settings import get_chat_model, get_openai_client
from storage import get_file_storage
from store import get_store

logger = logging.getLogger(__name__)


# --------------------------
# Shared collaborators
# --------------------------


@st.cache_resource
def get_cached_store():
    return get_store()


@st.cache_resource
def get_cached_file_storage():
    return get_file_storage()

# --------------------------
# Session-state utilities
# --------------------------


def init_session_state():
    """Ensure required keys exist in st.session_state."""
    if "project" not in st.session_state:
        st.session_state.project: Dict | None = None
    if "test_case_set_id" not in st.session_state:
        st.session_state.test_case_set_id: str | None = None
    if "test_cases" not in st.session_state:
        st.session_state.test_cases: List[Dict] = []
    if "test_case_chat_history" not in st.session_state:
        st.session_state.test_case_chat_history: List[Dict] = []


def reset_test_case_state():
    """Forget the open test-case set, its chat history and its versions."""
    st.session_state.test_case_set_id = None
    st.session_state.test_cases = []
    st.session_state.test_case_chat_history = []
    st.session_state.pop("test_case_versions", None)
    st.session_state.pop("tc_version_idx", None)


def push_test_case_version(test_cases: List[Dict]):
    """Append a snapshot of ``test_cases`` and point the navigator at it."""
    tc_versions = st.session_state.get("test_case_versions", [])
    tc_versions.append([c.copy() for c in test_cases])
    st.session_state["test_case_versions"] = tc_versions
    st.session_state["tc_version_idx"] = len(tc_versions) - 1


def flash(message: str, kind: str = "success"):
    """Show ``message`` at the top of the next script run."""
    st.session_state["flash"] = (kind, message)


def show_flash():
    if "flash" in st.session_state:
        kind, message = st.session_state.pop("flash")
        getattr(st, kind)(message)


# --------------------------
# Model round trip
# --------------------------


def call_model(prompt: str, client=None) -> str:
    """Send a single user prompt and return the raw text of the reply.

    No structured-output or tool-calling mode is requested; the reply is
    free text that the caller repairs into JSON.
    """
    client = client or get_openai_client()
    logger.info("Calling %s with a %d character prompt", get_chat_model(), len(prompt))

    response = client.chat.completions.create(
        model=get_chat_model(),
        messages=[{"role": "user", "content": prompt}],
    )

    # An empty choices list reads as an empty reply.
    text = (response.choices[0].message.content if response.choices else None) or ""
    logger.info("Received %d characters from the model", len(text))
    return text
