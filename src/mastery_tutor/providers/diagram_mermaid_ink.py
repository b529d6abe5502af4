from __future__ import annotations

import base64
import json
import os
from dataclasses import dataclass
from typing import Any, Mapping

import requests

from mastery_tutor.core.errors import DiagramRenderError
from mastery_tutor.core.interfaces import DiagramEngine


@dataclass(frozen=True)
class MermaidInkConfig:
    base_url: str = "https://mermaid.ink"

    @staticmethod
    def from_env() -> "MermaidInkConfig":
        return MermaidInkConfig(base_url=os.getenv("MERMAID_INK_URL", "https://mermaid.ink").strip())


class MermaidInkEngine(DiagramEngine):
    """
    Renders mermaid source to SVG through a mermaid.ink server.
    Theme settings travel as an init directive at the top of the source.
    """

    def __init__(self, config: MermaidInkConfig, timeout_s: float = 15.0) -> None:
        self._cfg = config
        self._timeout_s = timeout_s

    @staticmethod
    def with_directive(source: str, theme: Mapping[str, Any]) -> str:
        if not theme:
            return source
        return f"%%{{init: {json.dumps(dict(theme))}}}%%\n{source}"

    def render(self, render_id: str, source: str, theme: Mapping[str, Any]) -> str:
        encoded = base64.urlsafe_b64encode(
            self.with_directive(source, theme).encode("utf-8")
        ).decode("ascii")
        url = f"{self._cfg.base_url.rstrip('/')}/svg/{encoded}"

        try:
            resp = requests.get(url, timeout=self._timeout_s)
        except requests.RequestException as e:
            raise DiagramRenderError(f"Failed to reach {self._cfg.base_url} ({e})") from e

        if resp.status_code >= 400:
            raise DiagramRenderError(f"mermaid.ink error {resp.status_code}: {resp.text[:200]}")

        svg = resp.text
        if "<svg" not in svg:
            raise DiagramRenderError("mermaid.ink returned no SVG markup.")
        return f'<div id="{render_id}" class="mermaid-diagram">{svg}</div>'
