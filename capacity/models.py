"""
Data models for the capacity tracker.

Defines the static program catalog, the read-side result shapes returned
by the registration service, and the server's runtime settings.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from capacity.errors import ConfigError


@dataclass(frozen=True)
class Program:
    """
    A registration category (e.g. a camp week) with a fixed capacity.

    Attributes:
        id: Key used in URLs and in the persisted counter state.
        limit: Intended maximum number of registrations (advisory).
        name: Optional human-readable label for the status pages.
    """

    id: str
    limit: int
    name: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.name or self.id


class Catalog:
    """
    Immutable, ordered collection of programs.

    Loaded once at startup and injected into the registration service.
    Iteration follows definition order.
    """

    def __init__(self, programs: Iterable[Program]) -> None:
        ordered: List[Program] = []
        index: Dict[str, Program] = {}
        for program in programs:
            if not isinstance(program.id, str) or not program.id:
                raise ConfigError(f"Program id must be a non-empty string: {program.id!r}")
            if program.id in index:
                raise ConfigError(f"Duplicate program id: {program.id}")
            if (
                not isinstance(program.limit, int)
                or isinstance(program.limit, bool)
                or program.limit < 0
            ):
                raise ConfigError(
                    f"Limit for {program.id} must be a non-negative integer, "
                    f"got {program.limit!r}"
                )
            if program.name is not None and not isinstance(program.name, str):
                raise ConfigError(f"Name for {program.id} must be a string: {program.name!r}")
            ordered.append(program)
            index[program.id] = program
        self._programs: Tuple[Program, ...] = tuple(ordered)
        self._index = index

    def get(self, program_id: str) -> Optional[Program]:
        return self._index.get(program_id)

    @property
    def ids(self) -> List[str]:
        return [p.id for p in self._programs]

    def __contains__(self, program_id: object) -> bool:
        return program_id in self._index

    def __iter__(self) -> Iterator[Program]:
        return iter(self._programs)

    def __len__(self) -> int:
        return len(self._programs)

    def __repr__(self) -> str:
        return f"Catalog({list(self._programs)!r})"


@dataclass(frozen=True)
class LimitCheck:
    """Result of a capacity check for one program."""

    full: bool
    count: int
    limit: int

    def to_dict(self) -> Dict[str, object]:
        return {"full": self.full, "count": self.count, "limit": self.limit}


@dataclass(frozen=True)
class StatusRow:
    """One line of the status / admin views."""

    program_id: str
    display_name: str
    count: int
    limit: int

    @property
    def full(self) -> bool:
        return self.count >= self.limit

    @property
    def remaining(self) -> int:
        """Seats left before the limit is reached (never negative)."""
        return max(self.limit - self.count, 0)

    def to_dict(self) -> Dict[str, object]:
        return {
            "programId": self.program_id,
            "displayName": self.display_name,
            "count": self.count,
            "limit": self.limit,
            "full": self.full,
        }


@dataclass
class ServerSettings:
    """Global server settings."""

    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 3000
    counters_file: str = "counters.json"
    admin_key: str = ""
    keepalive_url: str = ""
    keepalive_interval: int = 600  # seconds
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
