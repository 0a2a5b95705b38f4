from __future__ import annotations
import json, logging, re
from typing import Any, Callable, Dict, List, Optional, Union

from engine.exceptions import OracleContractError
from . import ollama_client

logger = logging.getLogger(__name__)

NOT_FOUND_SENTINEL = "NONE"

OBSERVE_SYSTEM_PROMPT = (
    "You are helping the user automate the browser by finding a playwright locator string. "
    "You will be given an instruction describing the element to find, and a numbered list of possible elements. "
    "Return ONLY the numeric id of the element we are looking for. "
    f"If the element is not found, return {NOT_FOUND_SENTINEL}."
)

ACT_SYSTEM_PROMPT = (
    "You are a browser automation assistant. Given an instruction and a numbered list of page elements, "
    "output ONLY STRICT JSON: either one command or an array of commands, executed in order. "
    'Each command is {"element": <element id>, "method": <method>, "args": [<arguments>]}. '
    "Allowed methods and args: click [], dblclick [], hover [], focus [], check [], uncheck [], "
    "scroll_into_view [], clear [], fill [text], type [text], press [key], select_option [value or label]. "
    "NO prose, NO markdown fences, ONLY JSON."
)

USER_PROMPT_TEMPLATE = """
instruction: {instruction}
DOM: {dom}
"""

ChatFn = Callable[..., Optional[str]]


def _strip_fences(s: str) -> str:
    s = s.strip()
    if s.startswith("```"):
        s = re.sub(r"^```[a-zA-Z0-9]*", "", s).strip()
        if s.endswith("```"):
            s = s[:-3].strip()
    return s


def parse_element_id(content: Optional[str]) -> Optional[int]:
    """
    'NONE' -> None, '7' / 'Element 7' -> 7. Anything else breaks the contract.
    """
    s = _strip_fences(content or "").strip().strip("'\"`.")
    if not s:
        raise OracleContractError("no response when finding a selector")
    if s.upper() == NOT_FOUND_SENTINEL:
        return None
    if s.isdigit():
        return int(s)
    m = re.fullmatch(r"(?:element\s*)?(?:id\s*)?[:#]?\s*(\d+)", s, re.I)
    if m:
        return int(m.group(1))
    raise OracleContractError(f"oracle reply is neither an element id nor {NOT_FOUND_SENTINEL}: {content!r}")


def parse_action_reply(content: Optional[str]) -> Union[Dict[str, Any], List[Any]]:
    s = _strip_fences(content or "")
    if not s:
        raise OracleContractError("no response when resolving an action")
    try:
        obj = json.loads(s)
    except json.JSONDecodeError:
        # first JSON array or object embedded in the text
        m = re.search(r"(\[.*\]|\{.*\})", s, re.S)
        if not m:
            raise OracleContractError(f"oracle action reply is not JSON: {content!r}")
        try:
            obj = json.loads(m.group(1))
        except json.JSONDecodeError as e:
            raise OracleContractError(f"oracle action reply is not JSON: {content!r}") from e
    if isinstance(obj, dict) and isinstance(obj.get("commands"), list):
        obj = obj["commands"]
    if not isinstance(obj, (dict, list)) or not obj:
        raise OracleContractError(f"oracle action reply is empty or not a command: {content!r}")
    return obj


class OllamaOracle:
    """
    Reasoning oracle backed by a local Ollama model. No retries or
    re-ranking here: one request, one structurally checked reply.
    """

    def __init__(
        self,
        *,
        host: str = ollama_client.DEFAULT_HOST,
        model: str = ollama_client.DEFAULT_MODEL,
        timeout_s: int = 60,
        temperature: float = 0.1,
        chat_fn: Optional[ChatFn] = None,
    ):
        self.host = host
        self.model = model
        self.timeout_s = int(timeout_s)
        self.temperature = temperature
        self._chat = chat_fn or ollama_client.chat

    def _ask(self, system: str, instruction: str, dom_text: str) -> Optional[str]:
        messages = [
            {"role": "system", "content": system},
            {"role": "user", "content": USER_PROMPT_TEMPLATE.format(instruction=instruction, dom=dom_text)},
        ]
        content = self._chat(
            messages, host=self.host, model=self.model,
            temperature=self.temperature, timeout=self.timeout_s,
        )
        logger.debug("[oracle] response: %r", content)
        if content is None:
            raise OracleContractError(f"no reply from Ollama at {self.host} (model {self.model})")
        return content

    def resolve_locator(self, instruction: str, dom_text: str) -> Optional[int]:
        return parse_element_id(self._ask(OBSERVE_SYSTEM_PROMPT, instruction, dom_text))

    def resolve_actions(self, instruction: str, dom_text: str) -> Union[Dict[str, Any], List[Any]]:
        return parse_action_reply(self._ask(ACT_SYSTEM_PROMPT, instruction, dom_text))
