"""
Splits a tutor reply into labeled sections.

Replies follow a loose template:

    <optional preamble>
    1. THE CORE PRINCIPLE
    ...
    2. MENTAL MODEL (ANALOGY)
    ...
    3. DIRECT ANSWER
    ...
    4. CONCEPT MAP
    <prose and/or a mermaid graph>
    DEEP_LEARNING_TOPICS Topic A, Topic B, Topic C

The model does not always follow it, so every function here accepts any text
and degrades to a single untitled section.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional

from mastery_tutor.response.diagram import extract_diagram_block, strip_diagram_fences

CORE_PRINCIPLE = "CORE PRINCIPLE"
MENTAL_MODEL = "MENTAL MODEL / ANALOGY"
DIRECT_ANSWER = "DIRECT ANSWER"
CONCEPT_MAP = "CONCEPT MAP"

TOPIC_KEYWORDS = ("DEEP_LEARNING_TOPICS", "RELATED_TOPICS")

# (ordinal, canonical label, label pattern). Legacy wording from older
# conversations is accepted for 2 and 3.
_HEADERS = (
    (1, CORE_PRINCIPLE, r"(?:THE\s+)?CORE\s+PRINCIPLE"),
    (
        2,
        MENTAL_MODEL,
        r"(?:(?:THE\s+|A\s+)?MENTAL\s+MODEL(?:\s*/\s*ANALOGY|\s*\(\s*ANALOGY\s*\))?|AN\s+ANALOGY)",
    ),
    (3, DIRECT_ANSWER, r"(?:(?:THE\s+)?DIRECT\s+ANSWER|THE\s+APPLICATION)"),
    (4, CONCEPT_MAP, r"(?:THE\s+|A\s+)?CONCEPT\s+MAP"),
)

_HEADER_RES = [
    (
        ordinal,
        label,
        re.compile(rf"^\s*{ordinal}\.\s*{pattern}\s*(?:[:\-]\s*(?P<rest>.*?))?\s*$"),
    )
    for ordinal, label, pattern in _HEADERS
]

_TOPICS_RE = re.compile(
    # The list may start on the line after "KEYWORD:".
    r"\[?[ \t]*\b(?:%s)\b[ \t]*(?::[ \t]*(?:\n[ \t]*)?)?"
    r"(?P<payload>[^\]\n]*)\]?\s*\Z" % "|".join(TOPIC_KEYWORDS)
)
_MARKDOWN_SYMBOLS_RE = re.compile(r"[#*`]")


@dataclass(frozen=True)
class Section:
    label: Optional[str]
    body: str
    ordinal: Optional[int] = None

    @property
    def is_titled(self) -> bool:
        return self.label is not None


@dataclass(frozen=True)
class ParsedResponse:
    sections: list[Section] = field(default_factory=list)
    topics: list[str] = field(default_factory=list)
    diagram_source: Optional[str] = None

    def section(self, label: str) -> Optional[Section]:
        for s in self.sections:
            if s.label == label:
                return s
        return None


class _State(Enum):
    BEFORE_FIRST_HEADER = "before_first_header"
    IN_SECTION = "in_section"


def match_header(line: str) -> Optional[tuple[int, str, str]]:
    """Return (ordinal, label, same-line text) if the line is a section header."""
    for ordinal, label, rx in _HEADER_RES:
        m = rx.match(line)
        if m:
            return ordinal, label, (m.group("rest") or "")
    return None


def split_topics(text: str) -> tuple[str, list[str]]:
    """Strip the trailing topic marker, returning (remaining text, topics)."""
    m = _TOPICS_RE.search(text)
    if not m:
        return text, []
    topics = [t.strip() for t in m.group("payload").split(",")]
    return text[: m.start()].rstrip(), [t for t in topics if t]


def _split_lines(text: str) -> list[Section]:
    sections: list[Section] = []
    state = _State.BEFORE_FIRST_HEADER
    label: Optional[str] = None
    ordinal: Optional[int] = None
    lines: list[str] = []

    for line in text.splitlines():
        header = match_header(line)
        if header is None:
            lines.append(line)
            continue

        body = "\n".join(lines).strip()
        if state is _State.BEFORE_FIRST_HEADER:
            if body:
                sections.append(Section(label=None, body=body))
            state = _State.IN_SECTION
        else:
            sections.append(Section(label=label, body=body, ordinal=ordinal))

        ordinal, label, rest = header
        lines = [rest] if rest else []

    body = "\n".join(lines).strip()
    if state is _State.BEFORE_FIRST_HEADER:
        sections.append(Section(label=None, body=body))
    else:
        sections.append(Section(label=label, body=body, ordinal=ordinal))
    return sections


def _pull_diagram(sections: list[Section]) -> tuple[list[Section], Optional[str]]:
    for i, s in enumerate(sections):
        if s.label != CONCEPT_MAP:
            continue
        source, prose = extract_diagram_block(s.body)
        if source is None:
            return sections, None
        out = list(sections)
        out[i] = replace(s, body=prose)
        return out, source
    return sections, None


def parse_response(raw_text: Optional[str]) -> ParsedResponse:
    """Parse a reply into sections, topics and diagram source. Never raises."""
    text = raw_text if isinstance(raw_text, str) else ""
    body, topics = split_topics(text)
    sections, diagram_source = _pull_diagram(_split_lines(body))
    return ParsedResponse(sections=sections, topics=topics, diagram_source=diagram_source)


def parse_sections(raw_text: Optional[str]) -> list[Section]:
    return parse_response(raw_text).sections


def speakable_text(raw_text: Optional[str]) -> str:
    """Prose only: no headers, diagrams, topic marker or markdown symbols."""
    parsed = parse_response(raw_text)
    prose = "\n\n".join(s.body for s in parsed.sections if s.body)
    prose = strip_diagram_fences(prose)
    return _MARKDOWN_SYMBOLS_RE.sub("", prose).strip()


def copyable_text(raw_text: Optional[str]) -> str:
    text = raw_text if isinstance(raw_text, str) else ""
    body, _ = split_topics(text)
    return strip_diagram_fences(body, "[Diagram]").strip()
