# engine/snapshot.py
from __future__ import annotations
import logging
from typing import Any, Dict, Protocol

from playwright.sync_api import Page
from pydantic import BaseModel, Field

from engine.dom_scripts import PROCESS_ELEMENTS_JS

logger = logging.getLogger(__name__)


class DomSnapshot(BaseModel):
    """
    Numbered enumeration of the interactive elements of the page, plus the
    element id -> xpath table valid only for this snapshot.
    """
    text: str = ""
    selector_map: Dict[int, str] = Field(default_factory=dict)

    def locator_for(self, element_id: int) -> str | None:
        path = self.selector_map.get(element_id)
        return f"xpath={path}" if path else None


class SnapshotProvider(Protocol):
    def snapshot(self) -> DomSnapshot: ...


def _coerce_selector_map(raw: Any) -> Dict[int, str]:
    out: Dict[int, str] = {}
    for k, v in (raw or {}).items():
        try:
            out[int(k)] = str(v)
        except (TypeError, ValueError):
            logger.debug("[DOM] dropping non-numeric element id %r", k)
    return out


class PageSnapshotProvider:
    """Enumerates the live page through PROCESS_ELEMENTS_JS."""

    def __init__(self, page: Page):
        self.page = page

    def snapshot(self) -> DomSnapshot:
        payload = self.page.evaluate(PROCESS_ELEMENTS_JS) or {}
        snap = DomSnapshot(
            text=str(payload.get("outputString") or ""),
            selector_map=_coerce_selector_map(payload.get("selectorMap")),
        )
        logger.debug("[DOM] available elements:\n%s", snap.text)
        return snap
