from streamlit.testing.v1 import AppTest


def _page():
    import streamlit as st

    from helpers import flash, show_flash

    show_flash()
    if st.button("Generate"):
        flash("Generated 3 test cases!")
        st.rerun()
    if st.button("Fail"):
        flash("Could not save.", "error")
        st.rerun()


def test_message_survives_rerun_and_shows_once():
    at = AppTest.from_function(_page)
    at.run()
    assert len(at.success) == 0

    at.button[0].click().run()
    assert [s.value for s in at.success] == ["Generated 3 test cases!"]

    at.run()
    assert len(at.success) == 0


def test_error_flash_uses_error_element():
    at = AppTest.from_function(_page)
    at.run()

    at.button[1].click().run()
    assert [e.value for e in at.error] == ["Could not save."]
