"""In-band hand-off marker parsing for AI output."""

from __future__ import annotations

from typing import NamedTuple

DEFAULT_HANDOFF_MARKER = "{{ACTIVAR_SOPORTE}}"


class HandoffResult(NamedTuple):
    text: str
    handoff: bool


def split_handoff_marker(
    text: str, marker: str = DEFAULT_HANDOFF_MARKER
) -> HandoffResult:
    """
    Detect and strip the support hand-off marker.

    Without the marker the text comes back untouched. With it, every
    occurrence is removed and the remainder is trimmed.
    """
    if not marker or marker not in (text or ""):
        return HandoffResult(text=text, handoff=False)
    return HandoffResult(text=text.replace(marker, "").strip(), handoff=True)
