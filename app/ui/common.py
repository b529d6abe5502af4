from __future__ import annotations

import logging
from typing import Callable

import streamlit as st
import streamlit.components.v1 as components
from dotenv import load_dotenv

from mastery_tutor.audio.player import SpeechPlayer
from mastery_tutor.audio.sinks import ClipSink
from mastery_tutor.core.config import MODELS, TutorConfig
from mastery_tutor.core.factory import (
    get_diagram_engine,
    get_llm_provider,
    get_stt_provider,
    get_tts_provider,
)
from mastery_tutor.core.models import Message
from mastery_tutor.orchestrators.tutor_agent import TutorAgent
from mastery_tutor.response.diagram import DiagramCache, DiagramRender
from mastery_tutor.response.sections import copyable_text, parse_response
from mastery_tutor.state.app_state import AppState
from mastery_tutor.state.store import JsonStateStore

load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

LLM_PROVIDERS = {"Gemini": "gemini", "OpenAI": "openai"}
TTS_PROVIDERS = {"Gemini": "gemini", "ElevenLabs": "elevenlabs"}

_CONFIG = TutorConfig.from_env()


# ---- Cached resources (one per server process) ----
@st.cache_resource
def get_store() -> JsonStateStore:
    return JsonStateStore(_CONFIG.state_path)


@st.cache_resource
def build_llm(provider: str):
    return get_llm_provider(provider)


@st.cache_resource
def build_tts(provider: str):
    return get_tts_provider(provider)


@st.cache_resource
def build_stt(provider: str):
    return get_stt_provider(provider)


# Shared by all sessions; only successful renders are kept.
@st.cache_resource
def get_diagram_cache() -> DiagramCache:
    return DiagramCache(get_diagram_engine())


def cached_diagram(source: str, dark_mode: bool) -> DiagramRender:
    return get_diagram_cache().get(source, dark_mode=dark_mode)


# ---- Session state ----
def get_state() -> AppState:
    """Load persisted state once per browser session."""
    if "app_state" not in st.session_state:
        st.session_state["app_state"] = get_store().load_state(default_model=_CONFIG.model)
    return st.session_state["app_state"]


def save_state(state: AppState) -> None:
    get_store().save_state(state)


def build_agent(state: AppState, llm_label: str) -> TutorAgent:
    provider = LLM_PROVIDERS[llm_label]
    return TutorAgent(
        llm=build_llm(provider),
        state=state,
        config=_CONFIG,
        stt=build_stt(provider),
    )


def get_speech_sink() -> ClipSink:
    """The browser plays the clip; this sink tracks when it should be over."""
    if "speech_sink" not in st.session_state:
        st.session_state["speech_sink"] = ClipSink()
    return st.session_state["speech_sink"]


def _on_speech_change(playing: bool) -> None:
    if not playing:
        st.session_state.pop("speaking_id", None)


def get_player(tts_label: str) -> SpeechPlayer:
    key = f"speech_player_{tts_label}"
    if key not in st.session_state:
        st.session_state[key] = SpeechPlayer(
            synthesizer=build_tts(TTS_PROVIDERS[tts_label]),
            sink=get_speech_sink(),
            on_change=_on_speech_change,
        )
    return st.session_state[key]


def stop_speech() -> None:
    for key in [k for k in st.session_state if str(k).startswith("speech_player_")]:
        st.session_state[key].stop()


@st.fragment(run_every=1.0)
def speech_watch_fragment() -> None:
    """Rerun the page once the current clip has played to the end."""
    if get_speech_sink().poll():
        st.rerun()


# ---- Autosave ----
@st.fragment(run_every=_CONFIG.autosave_interval_s)
def autosave_fragment() -> None:
    state = st.session_state.get("app_state")
    if state is None:
        return
    get_store().save_messages(state.snapshot())
    st.caption("Session saved ✅")


# ---- Sidebar ----
@st.dialog("Clear session history?")
def confirm_clear_dialog() -> None:
    st.write(
        "This action will permanently delete your current session history and cannot be undone. "
        "Your Glossary items will remain safe."
    )
    left, right = st.columns(2)
    if left.button("Clear history", type="primary", use_container_width=True):
        state = get_state()
        state.clear_history()
        save_state(state)
        stop_speech()
        st.rerun()
    if right.button("Cancel", use_container_width=True):
        st.rerun()


def render_sidebar(state: AppState) -> tuple[str, str]:
    """Returns (llm provider label, tts provider label)."""
    with st.sidebar:
        st.header("Engine")

        llm_label = st.selectbox("LLM Provider", list(LLM_PROVIDERS), index=0)
        tts_label = st.selectbox("Voice Provider", list(TTS_PROVIDERS), index=0)

        model_ids = [m.id for m in MODELS]
        current = state.selected_model if state.selected_model in model_ids else model_ids[0]
        chosen = st.selectbox(
            "Model",
            model_ids,
            index=model_ids.index(current),
            format_func=lambda mid: next(f"{m.name} — {m.desc}" for m in MODELS if m.id == mid),
            disabled=llm_label != "Gemini",
        )
        if chosen != state.selected_model:
            state.select_model(chosen)
            save_state(state)

        dark = st.toggle("Dark diagrams", value=state.dark_mode)
        if dark != state.dark_mode:
            state.toggle_dark_mode()
            save_state(state)

        st.divider()
        if st.button("Clear history", use_container_width=True):
            confirm_clear_dialog()

        autosave_fragment()

    return llm_label, tts_label


# ---- Message rendering ----
def render_diagram_block(message: Message, source: str, dark_mode: bool) -> None:
    result = cached_diagram(source, dark_mode)
    if not result.ok:
        st.caption(f"ℹ️ {result.error}")
        return

    zoomed = st.toggle("Expand concept map", key=f"zoom-{message.id}")
    components.html(result.svg, height=820 if zoomed else 420, scrolling=True)
    st.caption("Esc to minimize" if zoomed else "Conceptual Analysis Map")


def render_attachment(message: Message) -> None:
    if message.attachment is None:
        return
    if message.attachment.is_image:
        st.image(message.attachment.data, caption="Image uploaded by user")
    else:
        st.caption("📄 Document analysis complete")


def render_message(
    message: Message,
    state: AppState,
    player: SpeechPlayer,
    on_topic: Callable[[str], None],
) -> None:
    is_assistant = message.role == "assistant"
    with st.chat_message("assistant" if is_assistant else "user", avatar="🎓" if is_assistant else "🧑‍🎓"):
        render_attachment(message)
        if not is_assistant:
            st.markdown(message.content)
            st.caption(message.timestamp.strftime("%H:%M"))
            return

        parsed = parse_response(message.content)
        for section in parsed.sections:
            if section.label:
                st.markdown(f"**{section.ordinal}. {section.label}**")
            if section.body:
                st.markdown(section.body)

        if parsed.diagram_source:
            render_diagram_block(message, parsed.diagram_source, state.dark_mode)

        if parsed.topics:
            st.caption("FOLLOW-UP CONCEPTS")
            cols = st.columns(min(len(parsed.topics), 4))
            for i, topic in enumerate(parsed.topics):
                cols[i % len(cols)].button(
                    topic,
                    key=f"topic-{message.id}-{i}",
                    on_click=on_topic,
                    args=(topic,),
                    disabled=state.is_loading,
                )

        speaking = st.session_state.get("speaking_id") == message.id and player.is_playing
        left, right = st.columns([1, 3])
        if left.button("⏹ Stop" if speaking else "🔊 Listen", key=f"speak-{message.id}"):
            if speaking:
                player.stop()
            else:
                with st.spinner("Preparing audio..."):
                    session = player.play_speech(message.content)
                if session.is_playing:
                    st.session_state["speaking_id"] = message.id
                elif player.last_error:
                    st.toast("Speech playback is unavailable right now.")
            st.rerun()

        clip = get_speech_sink().clip
        if speaking and clip is not None:
            st.audio(clip.samples, sample_rate=clip.sample_rate, autoplay=True)

        with right.expander("Copy text"):
            st.code(copyable_text(message.content), language=None)
        st.caption(message.timestamp.strftime("%H:%M"))
