# engine/cache.py
from __future__ import annotations
import json, logging, os, tempfile
from pathlib import Path
from typing import Dict, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from engine.exceptions import CacheCorruptError

logger = logging.getLogger(__name__)

OBSERVATIONS = "observations"
ACTIONS = "actions"
NAMESPACES = (OBSERVATIONS, ACTIONS)


class CacheEntry(BaseModel):
    """
    A persisted resolution: a locator string (observations) or a JSON command
    list (actions), tagged with the session that produced it.
    """
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    result: str
    session_id: str = Field(
        default="",
        validation_alias=AliasChoices("sessionId", "session_id", "id"),
        serialization_alias="sessionId",
    )


def _check_namespace(namespace: str) -> str:
    if namespace not in NAMESPACES:
        raise ValueError(f"Unknown cache namespace: {namespace!r} (expected one of {NAMESPACES})")
    return namespace


class ResolutionCache:
    """
    Two independent JSON tables under cache_dir. Every write rewrites the
    whole table through a temp file + os.replace, so the file on disk is
    always either the previous or the new table.
    """

    def __init__(self, cache_dir: Path | str, *, disabled: bool = False):
        self.cache_dir = Path(cache_dir)
        self.disabled = bool(disabled)
        self._tables: Dict[str, Dict[str, CacheEntry]] = {}

    def path_for(self, namespace: str) -> Path:
        return self.cache_dir / f"{_check_namespace(namespace)}.json"

    def _read(self, namespace: str) -> Dict[str, CacheEntry]:
        path = self.path_for(namespace)
        if not path.exists():
            return {}
        try:
            raw = json.loads(path.read_text(encoding="utf-8") or "{}")
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise CacheCorruptError(f"Cache table {path} is not valid JSON: {e}") from e
        if not isinstance(raw, dict):
            raise CacheCorruptError(f"Cache table {path} must hold a JSON object")
        table: Dict[str, CacheEntry] = {}
        for key, rec in raw.items():
            if isinstance(rec, dict):
                try:
                    table[key] = CacheEntry.model_validate(rec)
                except ValidationError as e:
                    raise CacheCorruptError(f"Cache table {path} has a malformed record {key}: {e}") from e
            else:
                # older tables stored the bare result
                table[key] = CacheEntry(result=str(rec))
        return table

    def load(self, namespace: str) -> Dict[str, CacheEntry]:
        _check_namespace(namespace)
        if self.disabled:
            return {}
        table = self._read(namespace)
        self._tables[namespace] = dict(table)
        logger.info("[cache] loaded %d %s from %s", len(table), namespace, self.path_for(namespace))
        return dict(table)

    def _persist(self, namespace: str, table: Dict[str, CacheEntry]) -> None:
        path = self.path_for(namespace)
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = {k: v.model_dump(by_alias=True) for k, v in table.items()}
        fd, tmp = tempfile.mkstemp(prefix=f".{namespace}.", suffix=".tmp", dir=str(path.parent))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(payload, fh, ensure_ascii=False, indent=2)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp, path)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise

    def write(self, namespace: str, key: str, entry: CacheEntry) -> bool:
        """Upsert one entry. Returns False when the cache is disabled and nothing was stored."""
        _check_namespace(namespace)
        if self.disabled:
            return False
        if namespace not in self._tables:
            self._tables[namespace] = self._read(namespace)
        table = dict(self._tables[namespace])
        table[key] = entry
        self._persist(namespace, table)
        self._tables[namespace] = table
        logger.info("[cache] saved %s entry %s (session=%s)", namespace, key[:12], entry.session_id or "-")
        return True

    def clear(self, namespace: Optional[str] = None) -> None:
        if self.disabled:
            return
        for ns in ([_check_namespace(namespace)] if namespace else list(NAMESPACES)):
            path = self.path_for(ns)
            if path.exists():
                path.unlink()
            self._tables[ns] = {}
            logger.info("[cache] cleared %s", ns)
