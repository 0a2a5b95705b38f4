from __future__ import annotations
from typing import Any, Dict, List, Optional

import pytest
from playwright.sync_api import Error as PWError
from playwright.sync_api import TimeoutError as PWTimeoutError

from engine.cache import ResolutionCache
from engine.resolver import ActionResolver
from engine.snapshot import DomSnapshot


class FakeLocator:
    def __init__(self, page: "FakePage", selector: str):
        self.page = page
        self.selector = selector

    @property
    def first(self) -> "FakeLocator":
        return self

    def wait_for(self, state="visible", timeout=None):
        if self.selector not in self.page.attached:
            raise PWTimeoutError(f"Timeout {timeout}ms exceeded waiting for {self.selector}")

    def _record(self, method, *args):
        if self.page.fail_on == method:
            raise PWError(f"{method} intercepted by overlay")
        self.page.calls.append((method, self.selector, args))

    def click(self, timeout=None): self._record("click")
    def dblclick(self, timeout=None): self._record("dblclick")
    def hover(self, timeout=None): self._record("hover")
    def focus(self, timeout=None): self._record("focus")
    def check(self, timeout=None): self._record("check")
    def uncheck(self, timeout=None): self._record("uncheck")
    def clear(self, timeout=None): self._record("clear")
    def scroll_into_view_if_needed(self, timeout=None): self._record("scroll_into_view")
    def fill(self, value, timeout=None): self._record("fill", value)
    def press(self, key, timeout=None): self._record("press", key)
    def press_sequentially(self, text, delay=None, timeout=None): self._record("type", text)

    def evaluate(self, script, arg=None):
        return arg in self.page.option_values

    def select_option(self, value=None, label=None, timeout=None):
        self._record("select_option", value if value is not None else label)


class FakePage:
    def __init__(self, attached=(), *, settle_error: Optional[Exception] = None):
        self.attached = set(attached)
        self.calls: List[tuple] = []
        self.settle_calls = 0
        self.settle_error = settle_error
        self.fail_on: Optional[str] = None
        self.option_values: set = set()
        self.visited: List[str] = []
        self.url = "about:blank"

    def locator(self, selector: str) -> FakeLocator:
        return FakeLocator(self, selector)

    def evaluate(self, script, arg=None):
        if "waitForDomSettle" in script:
            self.settle_calls += 1
            if self.settle_error is not None:
                raise self.settle_error
            return True
        raise AssertionError(f"unexpected evaluate: {script[:60]}")

    def goto(self, url, wait_until=None, timeout=None):
        self.visited.append(url)
        self.url = url


class FakeSnapshotProvider:
    def __init__(self, selector_map: Dict[int, str], text: str = ""):
        self.selector_map = dict(selector_map)
        self.text = text or "\n".join(f"{k}:<el>" for k in self.selector_map)
        self.calls = 0

    def snapshot(self) -> DomSnapshot:
        self.calls += 1
        return DomSnapshot(text=self.text, selector_map=dict(self.selector_map))


class FakeOracle:
    """Counts calls; replies are fixed per instance."""

    def __init__(self, *, locator_reply: Optional[int] = None, action_reply: Any = None):
        self.locator_reply = locator_reply
        self.action_reply = action_reply
        self.calls = 0
        self.seen: List[tuple] = []

    def resolve_locator(self, instruction, dom_text):
        self.calls += 1
        self.seen.append(("observe", instruction, dom_text))
        return self.locator_reply

    def resolve_actions(self, instruction, dom_text):
        self.calls += 1
        self.seen.append(("act", instruction, dom_text))
        return self.action_reply


SUBMIT_XPATH = "//button[@id='submit']"
SUBMIT_LOCATOR = f"xpath={SUBMIT_XPATH}"


@pytest.fixture
def cache(tmp_path) -> ResolutionCache:
    return ResolutionCache(tmp_path / "cache")


@pytest.fixture
def page() -> FakePage:
    return FakePage(attached={SUBMIT_LOCATOR})


@pytest.fixture
def make_resolver(page, cache):
    def _make(oracle, *, selector_map=None, cache_override=None, page_override=None, session_id="run-1"):
        return ActionResolver(
            page_override or page,
            oracle,
            cache_override or cache,
            session_id=session_id,
            snapshot_provider=FakeSnapshotProvider(selector_map if selector_map is not None else {7: SUBMIT_XPATH}),
            timeout_ms=50,
        )
    return _make
