from __future__ import annotations

import hashlib

import streamlit as st

from mastery_tutor.core.attachments import load_attachment
from mastery_tutor.core.errors import AttachmentError
from mastery_tutor.core.prompts import TOPIC_PROMPT
from ui.common import (
    build_agent,
    get_player,
    get_state,
    render_message,
    render_sidebar,
    save_state,
    speech_watch_fragment,
)

st.set_page_config(page_title="Mastery Engine", page_icon="🎓", layout="wide")

st.title("🎓 Mastery Engine")
st.caption("Ask about any subject, or attach a photo of your notes or a PDF. Concepts first, answers second.")

state = get_state()
llm_label, tts_label = render_sidebar(state)

if not state.onboarding_seen:
    with st.container(border=True):
        st.markdown(
            """
**Quick tour**
- Every answer is split into **Core Principle**, **Mental Model**, **Direct Answer** and a **Concept Map**.
- Click a **follow-up concept** to dig deeper.
- Record a question with the **🎙️** recorder instead of typing.
- Press **🔊 Listen** to hear an explanation read aloud.
- Save terms you want to remember on the **Glossary** page.
            """
        )
        if st.button("Got it"):
            state.mark_onboarding_seen()
            save_state(state)
            st.rerun()


def queue_topic(topic: str) -> None:
    st.session_state["pending_prompt"] = TOPIC_PROMPT.format(topic=topic)


try:
    agent = build_agent(state, llm_label)
except Exception as e:
    st.error(f"**{llm_label} is not configured.** Check your `.env` file.")
    with st.expander("Details (debug)"):
        st.write(f"{type(e).__name__}: {e}")
    st.stop()

try:
    player = get_player(tts_label)
except Exception as e:
    st.error(f"**{tts_label} voice is not configured.** Check your `.env` file.")
    with st.expander("Details (debug)"):
        st.write(f"{type(e).__name__}: {e}")
    st.stop()

for message in state.snapshot():
    render_message(message, state, player, on_topic=queue_topic)

if player.is_playing:
    speech_watch_fragment()

if state.error is not None:
    st.error(state.error.message)

# ---- Input ----
voice = st.audio_input("🎙️ Or ask out loud", disabled=state.is_loading, key="voice_question")

submission = st.chat_input(
    "Ask a question about your studies...",
    accept_file=True,
    file_type=["jpg", "jpeg", "png", "webp", "pdf"],
    disabled=state.is_loading,
)

pending = st.session_state.pop("pending_prompt", None)
text, attachment = "", None

if submission is not None:
    text = submission.text or ""
    if submission.files:
        upload = submission.files[0]
        try:
            attachment = load_attachment(upload.getvalue(), upload.type or "")
        except AttachmentError as e:
            st.error(str(e))
            st.stop()
elif pending:
    text = pending

if text.strip() or attachment is not None:
    with st.spinner("Mastery Engine is thinking..."):
        agent.send_turn(text, attachment)
    save_state(state)
    st.rerun()

# The recorder keeps returning the last clip on every rerun; send each one once.
if voice is not None:
    audio = voice.getvalue()
    digest = hashlib.sha1(audio).hexdigest()
    if st.session_state.get("last_voice_digest") != digest:
        st.session_state["last_voice_digest"] = digest
        with st.spinner("Transcribing your question..."):
            agent.send_voice_turn(audio, voice.type or "audio/wav")
        save_state(state)
        st.rerun()
