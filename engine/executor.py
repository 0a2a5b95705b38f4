# engine/executor.py
from __future__ import annotations
import logging
from enum import Enum

from playwright.sync_api import Error as PWError
from playwright.sync_api import Locator, Page
from playwright.sync_api import TimeoutError as PWTimeoutError

from engine.actions import ACTION_REGISTRY
from engine.commands import Command
from engine.exceptions import ActionExecutionError, CommandValidationError, TargetNotAttachedError

logger = logging.getLogger(__name__)


class SettleFailure(str, Enum):
    SCRIPT_MISSING = "settle_script_missing"
    NAVIGATION_INTERRUPTED = "navigation_interrupted"
    TIMEOUT = "settle_timeout"
    EVALUATE_FAILED = "settle_evaluate_failed"


def classify_settle_error(err: Exception) -> SettleFailure:
    msg = str(err).lower()
    if "waitfordomsettle" in msg and ("not a function" in msg or "undefined" in msg):
        return SettleFailure.SCRIPT_MISSING
    if "context was destroyed" in msg or "navigation" in msg or "target closed" in msg:
        return SettleFailure.NAVIGATION_INTERRUPTED
    if isinstance(err, PWTimeoutError) or "timeout" in msg:
        return SettleFailure.TIMEOUT
    return SettleFailure.EVALUATE_FAILED


def attached_locator(page: Page, selector: str, *, timeout_ms: int) -> Locator:
    """
    First match of selector, once it is attached to the live document.
    A selector may match several nodes; only the first is used.
    """
    loc = page.locator(selector).first
    try:
        loc.wait_for(state="attached", timeout=timeout_ms)
    except PWTimeoutError as e:
        raise TargetNotAttachedError(f"No live element matches locator: {selector}") from e
    return loc


class CommandExecutor:
    def __init__(self, page: Page, *, timeout_ms: int = 7000, settle_timeout_ms: int = 5000):
        self.page = page
        self.timeout_ms = int(timeout_ms)
        self.settle_timeout_ms = int(settle_timeout_ms)

    def execute(self, command: Command) -> None:
        action = ACTION_REGISTRY.get(command.method)
        if action is None:
            raise CommandValidationError(f"Unknown interaction primitive: {command.method}")
        if not isinstance(command.target, str):
            raise CommandValidationError(
                f"Command target must be a locator string at execution time, got {command.target!r}"
            )

        loc = attached_locator(self.page, command.target, timeout_ms=self.timeout_ms)
        logger.info("[act] %s on %s with args %s", command.method, command.target, command.args)
        try:
            action(loc, *command.args, timeout_ms=self.timeout_ms)
        except PWError as e:
            raise ActionExecutionError(f"{command.method} failed on {command.target}: {e}") from e

    def settle(self) -> bool:
        """
        Wait until the document stops mutating. Never raises: a failed wait
        is logged with a reason code and the caller carries on.
        """
        try:
            self.page.evaluate(
                "(timeoutMs) => window.waitForDomSettle(timeoutMs)", self.settle_timeout_ms
            )
            return True
        except PWError as e:
            reason = classify_settle_error(e)
            logger.warning(
                "[settle] document did not settle (%s): %s", reason.value, e,
                extra={"reason": reason.value, "url": getattr(self.page, "url", None)},
            )
            return False
