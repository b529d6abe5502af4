from __future__ import annotations

import streamlit as st
import streamlit.components.v1 as components

from ui.common import cached_diagram, get_state

st.set_page_config(page_title="About | Mastery Engine", page_icon="🏗️", layout="wide")

st.title("🏗️ About Mastery Engine")
st.caption("A conceptual tutor: principle first, analogy second, answer third, map last.")

left, right = st.columns([2, 1], gap="large")

with left:
    st.subheader("How a reply is built")
    st.markdown(
        """
- The chat history is trimmed to the last **25** turns, consecutive turns from the
  same side are merged, and the request always opens with a user turn.
- Rate limits and server errors are retried **3** times with 1s / 2s backoff.
- The raw reply is stored as-is and parsed every time it is shown into
  **Core Principle**, **Mental Model**, **Direct Answer** and **Concept Map**.
- The concept map's mermaid graph is rendered separately. A graph that fails to
  render becomes a note; the rest of the answer is unaffected.
- A recorded question is transcribed by the same provider and sent as text.
- **Listen** strips headers, diagrams and topics, asks for 24kHz PCM speech and
  decodes it locally.
        """
    )

with right:
    st.subheader("Where things live")
    st.markdown(
        """
- `core/` contracts, config, errors, retry
- `providers/` Gemini, OpenAI, ElevenLabs, mermaid.ink
- `response/` section parser and diagram delegation
- `audio/` PCM decoding and playback
- `orchestrators/` the conversation loop
- `state/` app state and local persistence
        """
    )

st.divider()
st.subheader("Pipeline")

PIPELINE = """flowchart LR
    A[User input] --> B[TutorAgent]
    B --> C[with_retry]
    C --> D[LLM provider]
    D --> E[Raw reply stored]
    E --> F[Section parser]
    F --> G[Diagram engine]
    F --> H[Follow-up topics]
    E --> I[Speech player]"""

result = cached_diagram(PIPELINE, get_state().dark_mode)
if result.ok:
    components.html(result.svg, height=320, scrolling=True)
else:
    st.code(PIPELINE, language="text")
    st.caption(result.error)
