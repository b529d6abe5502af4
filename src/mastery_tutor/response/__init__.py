from mastery_tutor.response.diagram import DiagramCache, DiagramRender, render_diagram
from mastery_tutor.response.sections import (
    CONCEPT_MAP,
    CORE_PRINCIPLE,
    DIRECT_ANSWER,
    MENTAL_MODEL,
    ParsedResponse,
    Section,
    copyable_text,
    parse_response,
    parse_sections,
    speakable_text,
)

__all__ = [
    "CONCEPT_MAP",
    "CORE_PRINCIPLE",
    "DIRECT_ANSWER",
    "MENTAL_MODEL",
    "DiagramCache",
    "DiagramRender",
    "ParsedResponse",
    "Section",
    "copyable_text",
    "parse_response",
    "parse_sections",
    "render_diagram",
    "speakable_text",
]
