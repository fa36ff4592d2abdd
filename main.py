import streamlit as st

from helpers import init_session_state, show_flash
from settings import configure_logging

# Set Streamlit page configuration early for wide layout
st.set_page_config(page_title="Test Case Studio", page_icon="🧪", layout="wide")


def main():
    configure_logging()

    # Import the step modules located under the 'steps' package
    from steps.step1 import view as step1
    from steps.step2 import view as step2
    from steps.step3 import view as step3

    init_session_state()
    show_flash()

    if not st.session_state.project:
        step1.render()
    elif not st.session_state.test_case_set_id:
        step2.render()
    else:
        step3.render()


if __name__ == "__main__":
    main()
