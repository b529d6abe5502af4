import pytest

from mastery_tutor.core.config import TutorConfig
from mastery_tutor.core.errors import USER_MESSAGES, AttachmentError, ErrorCategory, ProviderError
from mastery_tutor.core.models import Attachment, Message, Turn
from mastery_tutor.core.prompts import ATTACHMENT_ONLY_PROMPT, EMPTY_REPLY, NO_SPEECH_MESSAGE
from mastery_tutor.orchestrators.tutor_agent import TutorAgent, normalize_turns, trim_history
from mastery_tutor.state.app_state import AppState

MIB = 1024 * 1024


class DummyLLM:
    def __init__(self, replies=None) -> None:
        self.replies = list(replies or ["1. THE CORE PRINCIPLE\nEcho"])
        self.requests = []

    def generate(self, request) -> str:
        self.requests.append(request)
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        return reply


class DummySTT:
    def __init__(self, transcript="Why is the sky blue?", error=None) -> None:
        self.transcript = transcript
        self.error = error
        self.calls = []

    def transcribe(self, audio_bytes, mime_type="audio/wav") -> str:
        self.calls.append((audio_bytes, mime_type))
        if self.error:
            raise self.error
        return self.transcript


def _agent(llm=None, state=None, stt=None, **cfg):
    return TutorAgent(
        llm=llm or DummyLLM(),
        state=state or AppState(),
        config=TutorConfig(**cfg),
        sleep=lambda s: None,
        stt=stt,
    )


def test_send_turn_appends_user_and_raw_assistant_reply():
    raw = "1. THE CORE PRINCIPLE\nfoo\nDEEP_LEARNING_TOPICS A, B"
    agent = _agent(llm=DummyLLM([raw]))

    reply = agent.send_turn("Why is the sky blue?")

    messages = agent.state.messages
    assert [m.role for m in messages] == ["assistant", "user", "assistant"]
    assert messages[1].content == "Why is the sky blue?"
    assert reply is messages[-1]
    assert reply.content == raw
    assert not agent.state.is_loading
    assert agent.state.error is None


def test_request_starts_with_user_turn_and_carries_settings():
    llm = DummyLLM()
    agent = _agent(llm=llm, temperature=0.5, top_p=0.8)
    agent.state.select_model("gemini-2.5-flash")

    agent.send_turn("Hi")

    request = llm.requests[0]
    # Welcome message is a leading model turn and is dropped.
    assert request.turns == [Turn(role="user", text="Hi")]
    assert request.model == "gemini-2.5-flash"
    assert request.temperature == 0.5
    assert request.top_p == 0.8
    assert "Mastery Engine" in request.system_instruction


def test_blank_text_without_attachment_is_noop():
    llm = DummyLLM()
    agent = _agent(llm=llm)

    assert agent.send_turn("   \n") is None
    assert len(agent.state.messages) == 1
    assert llm.requests == []


def test_send_while_in_flight_is_noop():
    state = AppState()
    inner_results = []

    class ReentrantLLM(DummyLLM):
        def generate(self, request):
            self.requests.append(request)
            inner_results.append(agent.send_turn("second question"))
            return "answer"

    llm = ReentrantLLM()
    agent = _agent(llm=llm, state=state)
    agent.send_turn("first question")

    assert inner_results == [None]
    assert len(llm.requests) == 1
    assert [m.content for m in state.messages[1:]] == ["first question", "answer"]


def test_oversized_attachment_rejected_before_network():
    llm = DummyLLM()
    agent = _agent(llm=llm)
    big = Attachment(data=b"\0" * (6 * MIB), mime_type="image/png")

    with pytest.raises(AttachmentError) as info:
        agent.send_turn("look", big)

    assert info.value.kind == "size"
    assert llm.requests == []
    assert len(agent.state.messages) == 1


def test_unsupported_attachment_type_rejected():
    llm = DummyLLM()
    agent = _agent(llm=llm)
    doc = Attachment(data=b"a" * (4 * MIB), mime_type="text/plain")

    with pytest.raises(AttachmentError) as info:
        agent.send_turn("read this", doc)

    assert info.value.kind == "type"
    assert llm.requests == []


def test_attachment_only_turn():
    llm = DummyLLM()
    agent = _agent(llm=llm)
    image = Attachment(data=b"\x89PNG", mime_type="image/png")

    agent.send_turn("", image)

    assert agent.state.messages[1].content == "[Sent Image]"
    assert agent.state.messages[1].attachment == image
    last = llm.requests[0].turns[-1]
    assert last.text == ATTACHMENT_ONLY_PROMPT
    assert last.attachment == image


def test_pdf_only_turn_labelled_as_document():
    agent = _agent()
    agent.send_turn("", Attachment(data=b"%PDF", mime_type="application/pdf"))
    assert agent.state.messages[1].content == "[Sent Document]"


def test_failure_sets_category_error_and_keeps_user_message():
    llm = DummyLLM([ProviderError("Gemini error 401: API key not valid", status_code=401)])
    agent = _agent(llm=llm)

    assert agent.send_turn("hello?") is None

    assert [m.role for m in agent.state.messages] == ["assistant", "user"]
    assert agent.state.error.category is ErrorCategory.AUTHORIZATION
    assert agent.state.error.message == USER_MESSAGES[ErrorCategory.AUTHORIZATION]
    assert "API key not valid" not in agent.state.error.message
    assert not agent.state.is_loading
    assert len(llm.requests) == 1


def test_rate_limit_retried_then_reported():
    llm = DummyLLM([ProviderError("busy", status_code=429)])
    agent = _agent(llm=llm)

    agent.send_turn("hello?")

    assert len(llm.requests) == 3
    assert agent.state.error.category is ErrorCategory.RATE_LIMITED


def test_transient_failure_recovers():
    llm = DummyLLM([ProviderError("unavailable", status_code=503), "recovered"])
    agent = _agent(llm=llm)

    reply = agent.send_turn("hello?")

    assert reply.content == "recovered"
    assert agent.state.error is None


def test_content_filter_category():
    llm = DummyLLM([ProviderError("blocked", category=ErrorCategory.CONTENT_FILTERED)])
    agent = _agent(llm=llm)
    agent.send_turn("something")
    assert agent.state.error.category is ErrorCategory.CONTENT_FILTERED


def test_empty_reply_gets_placeholder_text():
    agent = _agent(llm=DummyLLM([""]))
    assert agent.send_turn("hi").content == EMPTY_REPLY


def test_previous_failed_turn_merges_with_new_one():
    llm = DummyLLM([ProviderError("bad request", status_code=400), "ok"])
    agent = _agent(llm=llm)

    agent.send_turn("first")  # fails, user message stays
    agent.send_turn("second")

    turns = llm.requests[-1].turns
    assert turns == [Turn(role="user", text="first\n\nsecond")]


def test_select_topic_prompt():
    llm = DummyLLM()
    agent = _agent(llm=llm)
    agent.select_topic("Buoyancy")
    assert llm.requests[0].turns[-1].text == "Tell me about the concept of: Buoyancy"


def test_history_truncated_to_limit():
    state = AppState(messages=[])
    for i in range(30):
        state.append_message(Message.create("user" if i % 2 == 0 else "assistant", f"m{i}"))
    llm = DummyLLM()
    agent = _agent(llm=llm, state=state, history_limit=25)

    agent.send_turn("latest")

    turns = llm.requests[0].turns
    # m5..m29 survive trimming; m5 is an assistant turn and is dropped.
    assert turns[0].text == "m6"
    assert turns[-2].text == "m29"
    assert turns[-1].text == "latest"
    assert len(turns) == 25


def test_normalize_merges_runs_and_drops_leading_model():
    png = Attachment(data=b"x", mime_type="image/png")
    turns = [
        Turn("model", "welcome"),
        Turn("model", "again"),
        Turn("user", "a"),
        Turn("user", "b", png),
        Turn("model", "c"),
        Turn("model", "d"),
        Turn("user", "e"),
    ]
    assert normalize_turns(turns) == [
        Turn("user", "a\n\nb", png),
        Turn("model", "c\n\nd"),
        Turn("user", "e"),
    ]


def test_trim_history_keeps_most_recent_in_order():
    turns = [Turn("user", str(i)) for i in range(5)]
    assert [t.text for t in trim_history(turns, 3)] == ["2", "3", "4"]
    assert trim_history(turns, 10) == turns
    assert trim_history(turns, 0) == []


def test_voice_turn_sends_transcript_as_text():
    llm = DummyLLM()
    stt = DummySTT(transcript="  Why is the sky blue?  ")
    agent = _agent(llm=llm, stt=stt)

    reply = agent.send_voice_turn(b"RIFF....", "audio/wav")

    assert stt.calls == [(b"RIFF....", "audio/wav")]
    assert agent.state.messages[1].content == "Why is the sky blue?"
    assert llm.requests[0].turns[-1].text == "Why is the sky blue?"
    assert reply is agent.state.messages[-1]


def test_voice_turn_with_attachment():
    llm = DummyLLM()
    image = Attachment(data=b"\x89PNG", mime_type="image/png")
    agent = _agent(llm=llm, stt=DummySTT(transcript="What is this?"))

    agent.send_voice_turn(b"RIFF", attachment=image)

    assert llm.requests[0].turns[-1] == Turn("user", "What is this?", image)


def test_silent_recording_sends_nothing():
    llm = DummyLLM()
    agent = _agent(llm=llm, stt=DummySTT(transcript="   "))

    assert agent.send_voice_turn(b"RIFF") is None

    assert llm.requests == []
    assert len(agent.state.messages) == 1
    assert agent.state.error.message == NO_SPEECH_MESSAGE
    assert not agent.state.is_loading


def test_transcription_failure_is_retried_then_reported():
    llm = DummyLLM()
    stt = DummySTT(error=ProviderError("busy", status_code=503))
    agent = _agent(llm=llm, stt=stt)

    assert agent.send_voice_turn(b"RIFF") is None

    assert len(stt.calls) == 3
    assert agent.state.error.category is ErrorCategory.CONNECTIVITY
    assert llm.requests == []
    assert not agent.state.is_loading


def test_empty_recording_is_noop():
    stt = DummySTT()
    agent = _agent(stt=stt)
    assert agent.send_voice_turn(b"") is None
    assert stt.calls == []


def test_voice_turn_needs_a_transcriber():
    with pytest.raises(ValueError):
        _agent().send_voice_turn(b"RIFF")
