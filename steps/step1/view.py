import logging

import streamlit as st

from errors import TestCaseError
from helpers import flash, get_cached_store, reset_test_case_state
from .helpers import create_project, delete_project, list_projects

logger = logging.getLogger(__name__)


def render():
    """Render Step 1 with a centered project list and a create form."""

    store = get_cached_store()

    # Center the content using a 3-column trick
    col1, col2, col3 = st.columns([1, 2, 1])

    with col2:
        st.title("🧪 Test Case Studio")
        st.header("Step 1: Choose a Project")

        with st.form("create_project", clear_on_submit=True):
            name = st.text_input("Project name", placeholder="Enter project name")
            description = st.text_area("Description", placeholder="Enter project description")
            submitted = st.form_submit_button("Create Project", type="primary", use_container_width=True)

        if submitted:
            try:
                project = create_project(store, name, description)
            except (TestCaseError, ValueError) as exc:
                logger.exception("Error creating project")
                st.error(str(exc))
            else:
                st.session_state.project = project
                reset_test_case_state()
                st.rerun()

        projects = list_projects(store)
        if not projects:
            st.info("No projects yet. Create one above to get started.")
            return

        for project in projects:
            with st.container(border=True):
                info, open_col, delete_col = st.columns([4, 1, 1])
                with info:
                    st.markdown(f"**{project['projectName']}**")
                    if project.get("description"):
                        st.caption(project["description"])
                with open_col:
                    if st.button("Open", key=f"open_{project['id']}", use_container_width=True):
                        st.session_state.project = project
                        reset_test_case_state()
                        st.rerun()
                with delete_col:
                    if st.button("Delete", key=f"delete_{project['id']}", use_container_width=True):
                        try:
                            delete_project(store, project["id"])
                        except TestCaseError as exc:
                            logger.exception("Error deleting project %s", project["id"])
                            st.error(str(exc))
                        else:
                            flash(f"Deleted {project['projectName']}.")
                            st.rerun()
