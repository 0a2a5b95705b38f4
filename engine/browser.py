from __future__ import annotations
import logging
from typing import Optional, Sequence, Dict, Any, Tuple
from playwright.sync_api import sync_playwright, Playwright, Browser, BrowserContext, Page

from engine.dom_scripts import DOM_SETTLE_INIT_JS

logger = logging.getLogger(__name__)

def _normalize_viewport(viewport: Optional[Sequence[int]]) -> Optional[Dict[str, int]]:
    if not viewport:
        return None
    try:
        w, h = int(viewport[0]), int(viewport[1])
    except (TypeError, ValueError, IndexError):
        return None
    if w > 0 and h > 0:
        return {"width": w, "height": h}
    return None

def _browser_ctor(p: Playwright, name: str):
    name = (name or "chromium").strip().lower()
    if name in ("chromium", "chrome"): return p.chromium
    if name in ("firefox", "ff"):       return p.firefox
    if name in ("webkit", "safari"):    return p.webkit
    return p.chromium

def open_browser(
    browser_name: str,
    headful: bool,
    *,
    viewport: Optional[Sequence[int]] = None,
    user_agent: Optional[str] = None,
    timeout_ms: Optional[int] = None,
    slow_mo: int = 0,
    proxy: Optional[Dict[str, str]] = None,   # {"server": "http://host:port", "username": "...", "password": "..."}
) -> Tuple[Playwright, Browser, BrowserContext, Page]:
    p = sync_playwright().start()
    browser_type = _browser_ctor(p, browser_name)

    launch_kwargs: Dict[str, Any] = {"headless": not bool(headful)}
    if slow_mo and int(slow_mo) > 0:
        launch_kwargs["slow_mo"] = int(slow_mo)
    if proxy:
        launch_kwargs["proxy"] = proxy

    browser: Browser = browser_type.launch(**launch_kwargs)

    vp = _normalize_viewport(viewport)
    context_kwargs: Dict[str, Any] = {}
    if vp:
        context_kwargs["viewport"] = vp
    if user_agent:
        context_kwargs["user_agent"] = str(user_agent)

    ctx: BrowserContext = browser.new_context(**context_kwargs)
    # every document (including after navigation) gets window.waitForDomSettle
    ctx.add_init_script(script=DOM_SETTLE_INIT_JS)
    page: Page = ctx.new_page()

    if timeout_ms and int(timeout_ms) > 0:
        ms = int(timeout_ms)
        page.set_default_timeout(ms)
        page.set_default_navigation_timeout(ms)

    logger.info("[browser] started %s (headful=%s)", browser_name, bool(headful))
    return p, browser, ctx, page

def close_browser(p: Playwright, browser: Browser, ctx: BrowserContext) -> None:
    try:
        ctx.close()
    finally:
        try:
            browser.close()
        finally:
            p.stop()
