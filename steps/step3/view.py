import logging

import streamlit as st

from errors import TestCaseError
from helpers import flash, get_cached_store, push_test_case_version, reset_test_case_state
from .helpers import (
    excel_file_name,
    modify_test_cases,
    records_from_frame,
    save_test_cases,
    to_excel_bytes,
    to_frame,
)

logger = logging.getLogger(__name__)


def _replace_test_cases(test_cases, track_version=True):
    """Show ``test_cases`` as the current table and write them back to the store."""
    st.session_state.test_cases = test_cases
    try:
        save_test_cases(get_cached_store(), st.session_state.test_case_set_id, test_cases)
    except TestCaseError as exc:
        logger.exception("Error saving test cases")
        flash(f"Changes are shown but were not saved: {exc}", "error")
    if track_version:
        push_test_case_version(test_cases)


def handle_test_case_chat(user_msg: str):
    """Apply a chat command to the current table and report the outcome in the chat."""
    history = st.session_state.test_case_chat_history
    before = len(st.session_state.test_cases)

    try:
        modified = modify_test_cases(st.session_state.test_cases, user_msg)
    except (TestCaseError, ValueError) as exc:
        logger.exception("Error modifying test cases")
        history.append({"role": "assistant", "content": f"⚠️ {exc}"})
        return

    _replace_test_cases(modified)
    history.append(
        {
            "role": "assistant",
            "content": f"**Summary of changes:** the table now has {len(modified)} test cases (was {before}).",
        }
    )


def render():
    """Render Step 3: review, refine, and chat-based editing of test cases."""

    st.header("Step 3: Generated Test Cases")

    project = st.session_state.project

    # Create two columns like in Step 2 but with wider table column
    col_left, col_right = st.columns([3, 2])

    with col_left:
        # Ensure version list exists so navigation shows at least one version
        if "test_case_versions" not in st.session_state:
            push_test_case_version(st.session_state.test_cases)

        # ------------------------
        # Version navigation UI for test cases
        # ------------------------
        total_tc_ver = len(st.session_state.test_case_versions)
        tc_idx = st.session_state.tc_version_idx

        nav_prev_tc, nav_label_tc, nav_next_tc = st.columns([1, 3, 1])

        with nav_prev_tc:
            if st.button("⬅️", disabled=tc_idx <= 0, use_container_width=True, key="tc_prev"):
                st.session_state.tc_version_idx = max(0, tc_idx - 1)
                _replace_test_cases(
                    st.session_state.test_case_versions[st.session_state.tc_version_idx],
                    track_version=False,
                )
                st.rerun()

        with nav_label_tc:
            st.markdown(
                f"<h3 style='text-align:center; padding-top:2px;'>Version {tc_idx + 1} / {total_tc_ver}</h3>",
                unsafe_allow_html=True,
            )

        with nav_next_tc:
            if st.button("➡️", disabled=tc_idx >= total_tc_ver - 1, use_container_width=True, key="tc_next"):
                st.session_state.tc_version_idx = min(total_tc_ver - 1, tc_idx + 1)
                _replace_test_cases(
                    st.session_state.test_case_versions[st.session_state.tc_version_idx],
                    track_version=False,
                )
                st.rerun()

        df = to_frame(st.session_state.test_cases)

        # Cells are editable in place; rows can be added and deleted
        edited = st.data_editor(
            df,
            use_container_width=True,
            hide_index=True,
            height=600,
            num_rows="dynamic",
            key=f"tc_editor_{tc_idx}_{total_tc_ver}",
        )

        save_col, csv_col, xlsx_col = st.columns(3)

        with save_col:
            if st.button("💾 Save Table Edits", use_container_width=True):
                _replace_test_cases(records_from_frame(edited))
                st.rerun()

        with csv_col:
            st.download_button(
                label="⬇️ Download CSV",
                data=df.to_csv(index=False).encode("utf-8"),
                file_name="test_cases.csv",
                mime="text/csv",
                use_container_width=True,
                disabled=df.empty,
            )

        with xlsx_col:
            st.download_button(
                label="⬇️ Download Excel",
                data=to_excel_bytes(st.session_state.test_cases),
                file_name=excel_file_name(project["projectName"]),
                mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
                use_container_width=True,
                disabled=df.empty,
            )

        # Back button
        if st.button("↩️ Back to Project", key="back_to_step2"):
            reset_test_case_state()
            st.rerun()

    with col_right:
        chat_container = st.container(height=706)

        # Display chat history specific to test cases
        with chat_container:
            for msg in st.session_state.test_case_chat_history:
                with st.chat_message(msg["role"]):
                    st.markdown(msg["content"])

            # If no previous test-case chat messages, display a friendly welcome/instruction
            if not st.session_state.test_case_chat_history:
                with st.chat_message("assistant"):
                    st.markdown(
                        "👋 Hello! I can help you refine your test cases. Try *Add a test case for invalid login* "
                        "or *Remove all test cases related to forgotten password*."
                    )

        # Chat input
        user_input = st.chat_input(
            "Ask me to add, remove, or modify test cases...",
            disabled=not st.session_state.test_cases,
        )

        if user_input:
            # Add user message to history
            st.session_state.test_case_chat_history.append({"role": "user", "content": user_input})

            # Display user message immediately
            with chat_container:
                with st.chat_message("user"):
                    st.markdown(user_input)

            # Process chat with the model
            with chat_container:
                with st.spinner("🤔 Processing your request..."):
                    handle_test_case_chat(user_input)

            st.rerun()
