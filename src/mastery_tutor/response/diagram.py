from __future__ import annotations

import logging
import re
import threading
import uuid
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Optional

from mastery_tutor.core.interfaces import DiagramEngine

logger = logging.getLogger(__name__)

DIAGRAM_KEYWORDS = (
    "graph",
    "flowchart",
    "sequenceDiagram",
    "classDiagram",
    "stateDiagram-v2",
    "stateDiagram",
    "erDiagram",
    "gantt",
    "pie",
    "mindmap",
    "journey",
    "timeline",
    "gitGraph",
)

RENDER_FAILED = "Visual logic is too complex for diagramming."
EMPTY_DIAGRAM = "No diagram to display."

_KEYWORD_RE = re.compile(r"^(?:%s)(?![\w-])" % "|".join(re.escape(k) for k in DIAGRAM_KEYWORDS))
_ANY_FENCE_RE = re.compile(r"```[ \t]*(?:mermaid)?[ \t]*\n(.*?)```", re.DOTALL)
_BLOCK_SPLIT_RE = re.compile(r"\n[ \t]*\n")
_EDGE_TOKENS = ("-->", "---", "==>", "-.->", "--o", "--x", "->>", "-->>")
_CONTINUATION_RE = re.compile(r"^(?:subgraph\b|end\b|classDef\b|class\b|style\b|linkStyle\b|click\b|%%)")

LIGHT_THEME_VARIABLES = {
    "primaryColor": "#6366f1",
    "primaryTextColor": "#ffffff",
    "primaryBorderColor": "#4338ca",
    "lineColor": "#64748b",
    "secondaryColor": "#f1f5f9",
    "tertiaryColor": "#f8fafc",
    "fontSize": "14px",
    "fontFamily": "Inter, sans-serif",
}

DARK_THEME_VARIABLES = {
    "primaryColor": "#818cf8",
    "primaryTextColor": "#f8fafc",
    "primaryBorderColor": "#4f46e5",
    "lineColor": "#94a3b8",
    "secondaryColor": "#1e293b",
    "tertiaryColor": "#0f172a",
    "fontSize": "14px",
    "fontFamily": "Inter, sans-serif",
}


def _join_prose(*parts: str) -> str:
    return "\n\n".join(p.strip() for p in parts if p and p.strip())


def _is_continuation(block: str) -> bool:
    lines = [ln for ln in block.splitlines() if ln.strip()]
    if not lines:
        return False
    for ln in lines:
        stripped = ln.strip()
        if ln[:1] in (" ", "\t") or _CONTINUATION_RE.match(stripped):
            continue
        if any(tok in stripped for tok in _EDGE_TOKENS):
            continue
        return False
    return True


def extract_diagram_block(body: str) -> tuple[Optional[str], str]:
    """
    Split a concept-map body into (diagram source, remaining prose).

    A fenced block wins. Otherwise the first blank-line separated block that
    opens with a graph keyword is taken, along with any following blocks that
    are clearly still graph statements.
    """
    fence = _ANY_FENCE_RE.search(body)
    if fence:
        source = fence.group(1).strip()
        return (source or None), _join_prose(body[: fence.start()], body[fence.end():])

    blocks = _BLOCK_SPLIT_RE.split(body)
    for i, block in enumerate(blocks):
        if not _KEYWORD_RE.match(block.lstrip()):
            continue
        end = i + 1
        while end < len(blocks) and _is_continuation(blocks[end]):
            end += 1
        source = "\n\n".join(b.strip("\n") for b in blocks[i:end]).strip()
        return source, _join_prose(*blocks[:i], *blocks[end:])

    return None, body.strip()


def strip_diagram_fences(text: str, replacement: str = "") -> str:
    return _ANY_FENCE_RE.sub(replacement, text)


def normalize_source(source: str) -> str:
    return source.replace("&lt;", "<").replace("&gt;", ">").strip()


def new_render_id() -> str:
    return f"mermaid-{uuid.uuid4().hex[:12]}"


def diagram_config(dark_mode: bool = False) -> dict[str, Any]:
    return {
        "theme": "dark" if dark_mode else "base",
        "themeVariables": dict(DARK_THEME_VARIABLES if dark_mode else LIGHT_THEME_VARIABLES),
        "flowchart": {"useMaxWidth": True, "htmlLabels": True, "curve": "basis"},
    }


@dataclass(frozen=True)
class DiagramRender:
    render_id: str
    source: str
    svg: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.svg is not None and self.error is None


def render_diagram(source: str, engine: DiagramEngine, dark_mode: bool = False) -> DiagramRender:
    """
    Hand diagram source to the rendering engine.
    Failures come back as a placeholder render, never as an exception.
    """
    render_id = new_render_id()
    clean = normalize_source(source or "")
    if not clean:
        return DiagramRender(render_id=render_id, source=clean, error=EMPTY_DIAGRAM)

    try:
        svg = engine.render(render_id, clean, diagram_config(dark_mode))
    except Exception as e:
        logger.error("Mermaid render error (%s): %s: %s", render_id, type(e).__name__, e)
        return DiagramRender(render_id=render_id, source=clean, error=RENDER_FAILED)

    if not svg:
        logger.error("Mermaid render error (%s): engine returned no markup", render_id)
        return DiagramRender(render_id=render_id, source=clean, error=RENDER_FAILED)

    return DiagramRender(render_id=render_id, source=clean, svg=svg)


class DiagramCache:
    """
    Successful renders keyed by (source, dark mode), least recently used first out.

    Placeholders are never stored, so a diagram that failed once (a timeout,
    a flaky engine) is attempted again the next time it is shown.
    """

    def __init__(self, engine: DiagramEngine, max_entries: int = 200) -> None:
        self._engine = engine
        self._max_entries = max_entries
        self._entries: OrderedDict[tuple[str, bool], DiagramRender] = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, source: str, dark_mode: bool = False) -> DiagramRender:
        key = (normalize_source(source or ""), dark_mode)
        with self._lock:
            hit = self._entries.get(key)
            if hit is not None:
                self._entries.move_to_end(key)
                return hit

        result = render_diagram(source, self._engine, dark_mode=dark_mode)
        if not result.ok:
            return result

        with self._lock:
            self._entries[key] = result
            while len(self._entries) > self._max_entries:
                self._entries.popitem(last=False)
        return result
