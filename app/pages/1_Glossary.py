from __future__ import annotations

import streamlit as st

from mastery_tutor.state.app_state import search_glossary
from ui.common import get_state, save_state

st.set_page_config(page_title="Glossary | Mastery Engine", page_icon="📘", layout="wide")

st.title("📘 Glossary")
st.caption("Terms you want to keep. Stored locally and kept when you clear the chat.")

state = get_state()

with st.form("add_term", clear_on_submit=True):
    term = st.text_input("New term")
    definition = st.text_area("Definition", height=100)
    if st.form_submit_button("Add to glossary", type="primary"):
        if not term.strip():
            st.warning("Please enter a term.")
        else:
            state.add_glossary_item(term, definition)
            save_state(state)
            st.success(f"Added **{term.strip()}**.")

st.divider()

query = st.text_input("Search terms...", key="glossary_search")
items = search_glossary(state.glossary, query)

if not items:
    st.info("No matching terms found.")

for item in items:
    with st.container(border=True):
        left, right = st.columns([5, 1])
        left.markdown(f"**{item.term}**")
        left.write(item.definition or "_No definition yet._")
        left.caption(item.timestamp.strftime("%Y-%m-%d %H:%M"))
        if right.button("Remove", key=f"remove-{item.id}"):
            state.remove_glossary_item(item.id)
            save_state(state)
            st.rerun()
