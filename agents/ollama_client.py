from __future__ import annotations
import logging, time
from typing import Any, Dict, List, Optional

import requests

logger = logging.getLogger(__name__)

DEFAULT_HOST = "http://localhost:11434"
DEFAULT_MODEL = "llama3"


def healthcheck(host: str = DEFAULT_HOST, timeout: float = 3.0) -> bool:
    try:
        r = requests.get(f"{host.rstrip('/')}/api/tags", timeout=timeout)
        r.raise_for_status()
        return True
    except requests.RequestException as e:
        logger.warning("[oracle] Ollama healthcheck failed at %s: %s", host, e)
        return False


def _post_json(url: str, payload: dict, *, timeout_connect=5, timeout_read=60, retries=1, backoff=0.7):
    last_err: Optional[Exception] = None
    for attempt in range(1, retries + 1):
        try:
            # (connect, read)
            r = requests.post(url, json=payload, timeout=(timeout_connect, timeout_read))
            r.raise_for_status()
            return r.json()
        except (requests.RequestException, ValueError) as e:
            last_err = e
            logger.warning("[oracle] POST attempt %d/%d failed: %s", attempt, retries, e)
            if attempt < retries:
                time.sleep(backoff * attempt)
    raise last_err


def chat(
    messages: List[Dict[str, Any]],
    *,
    host: str = DEFAULT_HOST,
    model: str = DEFAULT_MODEL,
    temperature: float = 0.1,
    timeout: int = 60,
    retries: int = 1,
) -> Optional[str]:
    """
    One non-streaming /api/chat round trip. Returns the assistant content,
    or None when the server is unreachable or the request fails.
    """
    if not healthcheck(host):
        return None

    payload = {
        "model": model,
        "messages": messages,
        "stream": False,
        "options": {"temperature": temperature, "top_p": 1},
    }
    try:
        data = _post_json(f"{host.rstrip('/')}/api/chat", payload, timeout_read=timeout, retries=retries)
    except (requests.RequestException, ValueError) as e:
        logger.error("[oracle] chat failed: %s", e)
        return None
    return (data.get("message") or {}).get("content")
