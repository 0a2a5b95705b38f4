from .pointer_actions import (
    action_click, action_dblclick, action_hover, action_focus,
    action_check, action_uncheck, action_scroll_into_view,
)
from .form_actions import (
    action_fill, action_type, action_press, action_clear, action_select_option,
)

# -----------------------------------------------------
# primitive name -> function(locator, *args, timeout_ms)
# keep in sync with engine.commands.PRIMITIVE_SIGNATURES
# -----------------------------------------------------
ACTION_REGISTRY = {
    # pointer
    "click": action_click,
    "dblclick": action_dblclick,
    "hover": action_hover,
    "focus": action_focus,
    "check": action_check,
    "uncheck": action_uncheck,
    "scroll_into_view": action_scroll_into_view,

    # form / keyboard
    "clear": action_clear,
    "fill": action_fill,
    "type": action_type,
    "press": action_press,
    "select_option": action_select_option,
}
