from playwright.sync_api import Locator

# ===============================================================
#  ACTIONS: Form fields & keyboard
# ===============================================================

def action_fill(locator: Locator, value: str, *, timeout_ms=7000):
    locator.fill(value, timeout=timeout_ms)


def action_type(locator: Locator, text: str, *, timeout_ms=7000):
    """
    Types character by character, for inputs that react to key events
    (autocomplete, masked fields) where fill() is not enough.
    """
    locator.press_sequentially(text, delay=10, timeout=timeout_ms)


def action_press(locator: Locator, key: str, *, timeout_ms=7000):
    locator.press(key, timeout=timeout_ms)


def action_clear(locator: Locator, *, timeout_ms=7000):
    locator.clear(timeout=timeout_ms)


def action_select_option(locator: Locator, value: str, *, timeout_ms=7000):
    """
    Selects from a <select> by option value first, then by visible label.
    """
    has_value = locator.evaluate(
        "(el, v) => Array.from(el.options || []).some(o => o.value === v)", value
    )
    if has_value:
        locator.select_option(value=value, timeout=timeout_ms)
    else:
        locator.select_option(label=value, timeout=timeout_ms)
