# engine/resolver.py
"""
Instruction -> action resolution.

observe() and act() share one control flow: derive the key, consult the
in-memory mirror of the cache, and on a miss ask the oracle about a fresh
DOM snapshot. Snapshots (and their selector maps) never outlive the call
that took them.
"""
from __future__ import annotations
import logging
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol, Union

from playwright.sync_api import Page

from engine.cache import ACTIONS, OBSERVATIONS, CacheEntry, ResolutionCache
from engine.commands import Command, parse_commands
from engine.exceptions import OracleContractError
from engine.executor import CommandExecutor, attached_locator
from engine.keys import derive_key
from engine.snapshot import DomSnapshot, PageSnapshotProvider, SnapshotProvider

logger = logging.getLogger(__name__)


class Oracle(Protocol):
    def resolve_locator(self, instruction: str, dom_text: str) -> Optional[int]: ...

    def resolve_actions(self, instruction: str, dom_text: str) -> Union[Dict[str, Any], List[Any]]: ...


class Phase(str, Enum):
    IDLE = "IDLE"
    SNAPSHOT = "SNAPSHOT"
    ORACLE_QUERY = "ORACLE_QUERY"
    VALIDATE = "VALIDATE"
    EXECUTE = "EXECUTE"
    SETTLE = "SETTLE"
    DONE = "DONE"


class ActionResolver:
    def __init__(
        self,
        page: Page,
        oracle: Oracle,
        cache: ResolutionCache,
        *,
        session_id: str = "",
        snapshot_provider: Optional[SnapshotProvider] = None,
        executor: Optional[CommandExecutor] = None,
        timeout_ms: int = 7000,
        settle_timeout_ms: int = 5000,
    ):
        self.page = page
        self.oracle = oracle
        self.cache = cache
        self.session_id = session_id
        self.timeout_ms = int(timeout_ms)
        self.snapshot_provider = snapshot_provider or PageSnapshotProvider(page)
        self.executor = executor or CommandExecutor(
            page, timeout_ms=timeout_ms, settle_timeout_ms=settle_timeout_ms
        )
        # loaded once; later writes by other processes are not seen
        self.observations: Dict[str, CacheEntry] = cache.load(OBSERVATIONS)
        self.actions: Dict[str, CacheEntry] = cache.load(ACTIONS)
        self.phase = Phase.IDLE

    def _enter(self, phase: Phase, key: str) -> None:
        self.phase = phase
        logger.debug("[resolver] %s -> %s", key[:12], phase.value)

    def _snapshot(self, key: str) -> DomSnapshot:
        self._enter(Phase.SNAPSHOT, key)
        return self.snapshot_provider.snapshot()

    # ---------- observe ----------

    def observe(self, instruction: str, *, session_id: Optional[str] = None) -> Optional[str]:
        """
        Resolve instruction to a locator that exists on the current page.
        Returns the cache key, or None when the oracle reports no match.
        """
        key = derive_key(instruction)
        self._enter(Phase.IDLE, key)

        cached = self.observations.get(key)
        if cached and cached.result:
            logger.info("[observe] cache hit for %r -> %s", instruction, cached.result)
            self._enter(Phase.EXECUTE, key)
            attached_locator(self.page, cached.result, timeout_ms=self.timeout_ms)
            self._enter(Phase.DONE, key)
            return key

        snap = self._snapshot(key)
        self._enter(Phase.ORACLE_QUERY, key)
        element_id = self.oracle.resolve_locator(instruction, snap.text)

        self._enter(Phase.VALIDATE, key)
        if element_id is None:
            logger.info("[observe] no element found for %r", instruction)
            self._enter(Phase.DONE, key)
            return None

        locator = snap.locator_for(element_id)
        if locator is None:
            raise OracleContractError(f"Element id {element_id} is not part of the current snapshot")
        logger.info("[observe] found element %s -> %s", element_id, locator)

        self._enter(Phase.EXECUTE, key)
        attached_locator(self.page, locator, timeout_ms=self.timeout_ms)

        entry = CacheEntry(result=locator, session_id=self._session(session_id))
        if self.cache.write(OBSERVATIONS, key, entry):
            self.observations[key] = entry
        self._enter(Phase.DONE, key)
        return key

    # ---------- act ----------

    def act(self, instruction: str, *, session_id: Optional[str] = None) -> None:
        """
        Resolve instruction to commands and run them against the live page.
        Fresh resolutions are never written to the action cache; only
        operator-pinned sequences are replayed from it.
        """
        self.executor.settle()
        key = derive_key(instruction)
        self._enter(Phase.IDLE, key)
        logger.info("[act] taking action: %s", instruction)

        cached = self.actions.get(key)
        if cached and cached.result:
            logger.info("[act] cache hit for action: %s", instruction)
            commands = self._cached_commands(cached)
        else:
            commands = self._resolve_commands(instruction, key)

        self._enter(Phase.EXECUTE, key)
        for command in commands:
            self.executor.execute(command)

        self._enter(Phase.SETTLE, key)
        self.executor.settle()
        self._enter(Phase.DONE, key)

    def _cached_commands(self, entry: CacheEntry) -> List[Command]:
        commands = parse_commands(entry.result)
        for c in commands:
            if not isinstance(c.target, str):
                raise OracleContractError(
                    f"Cached action targets element id {c.target}; cached actions need locator strings"
                )
        return commands

    def _resolve_commands(self, instruction: str, key: str) -> List[Command]:
        snap = self._snapshot(key)
        self._enter(Phase.ORACLE_QUERY, key)
        response = self.oracle.resolve_actions(instruction, snap.text)
        logger.debug("[act] response: %r", response)

        self._enter(Phase.VALIDATE, key)
        if not response:
            raise OracleContractError(f"Oracle returned no commands for {instruction!r}")
        resolved: List[Command] = []
        for c in parse_commands(response):
            if not isinstance(c.target, int):
                raise OracleContractError(f"Oracle command must target an element id, got {c.target!r}")
            locator = snap.locator_for(c.target)
            if locator is None:
                raise OracleContractError(f"Element id {c.target} is not part of the current snapshot")
            resolved.append(c.model_copy(update={"target": locator}))
        return resolved

    def _session(self, session_id: Optional[str]) -> str:
        return self.session_id if session_id is None else session_id
