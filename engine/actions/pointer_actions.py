from playwright.sync_api import Locator

# ===============================================================
#  ACTIONS: Pointer
# ===============================================================

def action_click(locator: Locator, *, timeout_ms=7000):
    locator.click(timeout=timeout_ms)


def action_dblclick(locator: Locator, *, timeout_ms=7000):
    locator.dblclick(timeout=timeout_ms)


def action_hover(locator: Locator, *, timeout_ms=7000):
    locator.hover(timeout=timeout_ms)


def action_focus(locator: Locator, *, timeout_ms=7000):
    locator.focus(timeout=timeout_ms)


def action_check(locator: Locator, *, timeout_ms=7000):
    locator.check(timeout=timeout_ms)


def action_uncheck(locator: Locator, *, timeout_ms=7000):
    locator.uncheck(timeout=timeout_ms)


def action_scroll_into_view(locator: Locator, *, timeout_ms=7000):
    locator.scroll_into_view_if_needed(timeout=timeout_ms)
