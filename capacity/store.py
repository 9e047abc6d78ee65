"""
Counter Store — the single source of truth for registration counts.

The store keeps the committed counter state in memory and writes the
whole mapping through a StateBackend after every mutation:
  - One asyncio.Lock per store serializes every read-modify-write-persist
    cycle, so concurrent increments never lose an update
  - A mutation is built on a copy of the state and only swapped in after
    the backend accepted it, so a failed write leaves memory untouched
  - The JSON file backend writes to a temporary sibling and commits with
    an atomic rename, so a crash mid-write keeps the previous file intact

Reads are served from the committed in-memory snapshot without taking
the lock once the state has been loaded.
"""

from __future__ import annotations

import asyncio
import json
import os
from pathlib import Path
from typing import Callable, Dict, Iterable, Optional, Protocol

import aiofiles
import aiofiles.os as aos

from capacity.errors import InvalidValue, PersistenceFailure


def _is_count(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def _validate_state(raw: object, source: object) -> Dict[str, int]:
    if not isinstance(raw, dict):
        raise PersistenceFailure(f"Counter state in {source} is not a JSON object")
    state: Dict[str, int] = {}
    for key, value in raw.items():
        if not _is_count(value):
            raise PersistenceFailure(
                f"Counter state in {source} has an invalid count for {key!r}: {value!r}"
            )
        state[str(key)] = value
    return state


class StateBackend(Protocol):
    """
    Durable storage for the flat program -> count mapping.

    Requirements:
    - load() returns the full mapping ({} when nothing was stored yet)
    - save() replaces the full mapping atomically, or raises
      PersistenceFailure and leaves the previous mapping in place
    """

    async def load(self) -> Dict[str, int]: ...
    async def save(self, state: Dict[str, int]) -> None: ...


class JsonFileBackend:
    """Stores the counters as a single JSON object on local disk."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    @property
    def _tmp_path(self) -> Path:
        return self.path.with_name(self.path.name + ".tmp")

    async def load(self) -> Dict[str, int]:
        try:
            async with aiofiles.open(self.path, "r", encoding="utf-8") as fh:
                text = await fh.read()
        except FileNotFoundError:
            return {}
        except OSError as exc:
            raise PersistenceFailure(f"Could not read {self.path}: {exc}") from exc

        if not text.strip():
            # An existing but blank file means a lost write, not an empty state.
            raise PersistenceFailure(f"Counter file {self.path} is empty")
        try:
            raw = json.loads(text)
        except json.JSONDecodeError as exc:
            raise PersistenceFailure(f"Invalid JSON in {self.path}: {exc}") from exc
        return _validate_state(raw, self.path)

    async def save(self, state: Dict[str, int]) -> None:
        payload = json.dumps(state, indent=2)
        tmp = self._tmp_path
        try:
            await aos.makedirs(self.path.parent, exist_ok=True)
            async with aiofiles.open(tmp, "w", encoding="utf-8") as fh:
                await fh.write(payload)
                await fh.flush()
                await asyncio.to_thread(os.fsync, fh.fileno())
            # rename temp -> final (atomic on the same filesystem)
            await aos.replace(tmp, self.path)
        except OSError as exc:
            await self._discard_tmp()
            raise PersistenceFailure(f"Could not write {self.path}: {exc}") from exc

    async def _discard_tmp(self) -> None:
        try:
            await aos.remove(self._tmp_path)
        except OSError:
            # The write error is the one reported to the caller.
            pass


class MemoryBackend:
    """
    In-process backend for tests and throwaway runs.

    State is lost on restart.
    """

    def __init__(self, initial: Optional[Dict[str, int]] = None) -> None:
        self.saved: Dict[str, int] = _validate_state(dict(initial or {}), "memory")
        self.save_count = 0

    async def load(self) -> Dict[str, int]:
        return dict(self.saved)

    async def save(self, state: Dict[str, int]) -> None:
        self.saved = dict(state)
        self.save_count += 1


class CounterStore:
    """
    Owns the program -> count mapping and its persistence.

    Attributes:
        backend: Where the state is loaded from and flushed to.
    """

    def __init__(self, backend: StateBackend) -> None:
        self.backend = backend
        self._lock = asyncio.Lock()
        self._state: Optional[Dict[str, int]] = None

    async def load(self) -> Dict[str, int]:
        """Load the durable state now instead of on first access."""
        async with self._lock:
            return dict(await self._loaded())

    async def get(self, program_id: str) -> int:
        """Current count for a program, 0 when it has no entry."""
        state = await self._committed()
        return state.get(program_id, 0)

    async def snapshot(self) -> Dict[str, int]:
        """Copy of the whole committed state, unknown keys included."""
        return dict(await self._committed())

    async def increment(self, program_id: str, by: int = 1) -> int:
        _check_step(by)
        return await self._update(program_id, lambda count: count + by)

    async def decrement(self, program_id: str, by: int = 1) -> int:
        """Subtract from the count, never going below zero."""
        _check_step(by)
        return await self._update(program_id, lambda count: max(count - by, 0))

    async def set_exact(self, program_id: str, value: int) -> int:
        if not _is_count(value):
            raise InvalidValue(value)
        return await self._update(program_id, lambda _count: value)

    async def initialize_missing(self, known_ids: Iterable[str]) -> Dict[str, int]:
        """
        Give every known program an explicit entry, keeping current counts.

        Only writes when at least one entry was missing, so calling it again
        leaves the durable state byte-for-byte unchanged.
        """
        async with self._lock:
            current = await self._loaded()
            missing = [pid for pid in known_ids if pid not in current]
            if missing:
                new_state = dict(current)
                for pid in missing:
                    new_state[pid] = 0
                await self._commit(new_state)
            return dict(self._state or {})

    # ── Internals ─────────────────────────────────────────

    async def _committed(self) -> Dict[str, int]:
        state = self._state
        if state is None:
            async with self._lock:
                state = await self._loaded()
        return state

    async def _loaded(self) -> Dict[str, int]:
        # Caller holds the lock.
        if self._state is None:
            self._state = await self.backend.load()
        return self._state

    async def _update(self, program_id: str, change: Callable[[int], int]) -> int:
        async with self._lock:
            current = await self._loaded()
            new_state = dict(current)
            new_state[program_id] = change(current.get(program_id, 0))
            await self._commit(new_state)
            return new_state[program_id]

    async def _commit(self, new_state: Dict[str, int]) -> None:
        await self.backend.save(new_state)
        self._state = new_state


def _check_step(by: int) -> None:
    if not _is_count(by):
        raise InvalidValue(by)
