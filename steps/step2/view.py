import logging

import pandas as pd
import streamlit as st

from constants import DOCUMENT_TYPES, DOCUMENTS, TEMPLATE_TYPES, TEMPLATES, TEST_CASES
from errors import TestCaseError
from helpers import (
    flash,
    get_cached_file_storage,
    get_cached_store,
    push_test_case_version,
    reset_test_case_state,
    show_flash,
)
from ..step3.helpers import latest_test_case_set
from .helpers import (
    delete_document,
    delete_template,
    generate_test_cases,
    load_sample_records,
    save_generated_test_cases,
    upload_document,
    upload_template,
)

logger = logging.getLogger(__name__)


def _open_test_case_set(test_case_set):
    reset_test_case_state()
    st.session_state.test_case_set_id = test_case_set["id"]
    st.session_state.test_cases = test_case_set.get("testCaseData", [])
    push_test_case_version(st.session_state.test_cases)


def _handle_uploads(files, upload, label):
    """Run ``upload`` for every file, reporting each failure without stopping."""
    store = get_cached_store()
    file_storage = get_cached_file_storage()
    project_id = st.session_state.project["id"]

    stored = 0
    for f in files:
        try:
            upload(store, file_storage, project_id, f.name, f.getvalue(), f.type)
            stored += 1
        except TestCaseError as exc:
            logger.exception("Error uploading %s %s", label, f.name)
            st.error(f"{f.name}: {exc}")
    if stored:
        st.success(f"✅ Uploaded {stored} {label}(s).")


def _render_files(records, name_key, kind, delete):
    store = get_cached_store()
    file_storage = get_cached_file_storage()
    for record in records:
        with st.container(border=True):
            info, download_col, delete_col = st.columns([4, 1, 1])
            with info:
                st.markdown(f"**{record[name_key]}**")
                if kind == TEMPLATES:
                    st.caption("Headers: " + ", ".join(record.get("columnHeaders", [])))
                else:
                    st.caption(record.get("fileType", "").upper())
            with download_col:
                try:
                    data = file_storage.download(record["storagePath"])
                except TestCaseError:
                    logger.exception("Error downloading %s", record["storagePath"])
                    st.caption("Unavailable")
                else:
                    st.download_button(
                        "Download",
                        data=data,
                        file_name=record[name_key],
                        key=f"download_{record['id']}",
                        use_container_width=True,
                    )
            with delete_col:
                if st.button("Delete", key=f"delete_{record['id']}", use_container_width=True):
                    try:
                        delete(store, record["id"])
                    except TestCaseError as exc:
                        logger.exception("Error deleting %s", record["id"])
                        st.error(str(exc))
                    else:
                        flash(f"Deleted {record[name_key]}.")
                        st.rerun()


def render():
    """Render Step 2: project documents, templates and test-case generation."""

    store = get_cached_store()
    project = st.session_state.project

    head_left, head_right = st.columns([4, 1])
    with head_left:
        st.header(f"Step 2: {project['projectName']}")
        if project.get("description"):
            st.caption(project["description"])
    with head_right:
        if st.button("↩️ Back to Projects", use_container_width=True):
            st.session_state.project = None
            reset_test_case_state()
            st.rerun()

    documents = store.list(DOCUMENTS, project["id"])
    templates = store.list(TEMPLATES, project["id"])

    col_left, col_right = st.columns([3, 2])

    # Left column: uploads
    with col_left:
        tab_docs, tab_templates = st.tabs(
            [f"Documents ({len(documents)})", f"Templates ({len(templates)})"]
        )

        with tab_docs:
            with st.form("upload_documents", clear_on_submit=True):
                files = st.file_uploader(
                    "Upload Documents (PDF, DOCX, TXT, XLSX, CSV)",
                    type=DOCUMENT_TYPES,
                    accept_multiple_files=True,
                )
                if st.form_submit_button("Upload", use_container_width=True) and files:
                    with st.spinner("Extracting and uploading documents..."):
                        _handle_uploads(files, upload_document, "document")
                    documents = store.list(DOCUMENTS, project["id"])

            if not documents:
                st.info("No documents uploaded yet.")
            _render_files(documents, "fileName", DOCUMENTS, delete_document)

        with tab_templates:
            with st.form("upload_templates", clear_on_submit=True):
                files = st.file_uploader(
                    "Upload Excel Template (.xlsx)",
                    type=TEMPLATE_TYPES,
                    accept_multiple_files=True,
                )
                if st.form_submit_button("Upload", use_container_width=True) and files:
                    with st.spinner("Reading and uploading templates..."):
                        _handle_uploads(files, upload_template, "template")
                    templates = store.list(TEMPLATES, project["id"])

            if not templates:
                st.info("No templates uploaded yet.")
            _render_files(templates, "templateName", TEMPLATES, delete_template)

    # Right column: generation
    with col_right:
        existing = latest_test_case_set(store, project["id"])
        if existing and st.button(
            f"📋 Open Saved Test Cases ({len(existing.get('testCaseData', []))})",
            use_container_width=True,
        ):
            _open_test_case_set(existing)
            st.rerun()

        st.subheader("🚀 Generate Test Cases")

        if not documents or not templates:
            st.info("Upload at least one document and one template to generate test cases.")
            return

        docs_by_id = {d["id"]: d for d in documents}
        templates_by_id = {t["id"]: t for t in templates}

        selected_docs = st.multiselect(
            "Select Documents",
            options=list(docs_by_id),
            format_func=lambda i: docs_by_id[i]["fileName"],
        )
        template_id = st.selectbox(
            "Select Template",
            options=list(templates_by_id),
            format_func=lambda i: templates_by_id[i]["templateName"],
        )
        sample_id = st.selectbox(
            "Select Excel Template as Sample (Optional)",
            options=[None] + list(templates_by_id),
            format_func=lambda i: "None" if i is None else templates_by_id[i]["templateName"],
        )

        sample_records = []
        if sample_id:
            try:
                sample_records = load_sample_records(
                    get_cached_file_storage(), templates_by_id[sample_id]
                )
            except TestCaseError as exc:
                logger.exception("Error loading sample from %s", sample_id)
                st.error(str(exc))
            else:
                st.markdown("**Sample Preview:**")
                st.dataframe(pd.DataFrame(sample_records), use_container_width=True, hide_index=True)

        custom_prompt = st.text_area(
            "Custom Prompt (Optional)",
            placeholder="Add extra instructions or context for Gemini...",
        )

        if st.button(
            "Generate Test Cases",
            type="primary",
            use_container_width=True,
            disabled=not selected_docs or not template_id,
        ):
            template = templates_by_id[template_id]
            with st.spinner("Generating test cases. This may take a while..."):
                try:
                    test_cases = generate_test_cases(
                        [docs_by_id[i].get("extractedContent", "") for i in selected_docs],
                        template["columnHeaders"],
                        sample_records,
                        custom_prompt,
                    )
                except (TestCaseError, ValueError) as exc:
                    logger.exception("Error generating test cases")
                    st.error(str(exc))
                    return

                try:
                    set_id = save_generated_test_cases(
                        store, project["id"], selected_docs, template_id, test_cases
                    )
                    test_case_set = store.get(TEST_CASES, set_id)
                except TestCaseError as exc:
                    logger.exception("Error saving generated test cases")
                    st.error(str(exc))
                    return

            _open_test_case_set(test_case_set)
            flash(f"Generated {len(test_cases)} test cases!")
            st.rerun()
