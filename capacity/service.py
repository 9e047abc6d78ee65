"""
Registration Service — maps check/register/admin actions onto the store.

The service is stateless apart from its collaborators: the injected
catalog decides which program identifiers exist, the counter store owns
the counts. Capacity limits are advisory: register() never refuses a
registration because a program is full, callers are expected to ask
check_limit() first.
"""

from __future__ import annotations

import re
import secrets
from typing import List, Optional

from capacity import notifier
from capacity.errors import InvalidValue, Unauthorized, UnknownProgram
from capacity.models import Catalog, LimitCheck, Program, StatusRow
from capacity.store import CounterStore

_COUNT_RE = re.compile(r"^\d+$")


def parse_count(raw: object) -> int:
    """
    Parse a submitted count ("  7 " -> 7).

    Anything that is not a plain non-negative integer raises InvalidValue:
    empty strings, signs, decimals, words.
    """
    if isinstance(raw, int) and not isinstance(raw, bool):
        if raw < 0:
            raise InvalidValue(raw)
        return raw
    if not isinstance(raw, str):
        raise InvalidValue(raw)
    text = raw.strip()
    if not _COUNT_RE.match(text):
        raise InvalidValue(raw)
    return int(text)


class RegistrationService:
    """
    Request-level operations over the counter store.

    Attributes:
        catalog: The static set of known programs.
        store: Where counts are read and written.
    """

    def __init__(self, catalog: Catalog, store: CounterStore, admin_key: str = "") -> None:
        self.catalog = catalog
        self.store = store
        self._admin_key = admin_key

    @property
    def admin_enabled(self) -> bool:
        return bool(self._admin_key)

    def _program(self, program_id: str) -> Program:
        program = self.catalog.get(program_id)
        if program is None:
            raise UnknownProgram(program_id)
        return program

    async def check_limit(self, program_id: str) -> LimitCheck:
        """Current count and limit for a program. Read-only."""
        program = self._program(program_id)
        count = await self.store.get(program.id)
        notifier.print_check(program.id, count, program.limit)
        return LimitCheck(full=count >= program.limit, count=count, limit=program.limit)

    async def register(self, program_id: str) -> int:
        """Record one registration and return the new count."""
        program = self._program(program_id)
        count = await self.store.increment(program.id)
        notifier.print_counter_change(program.id, "register", count, program.limit)
        return count

    def authorize(self, credential: Optional[str]) -> None:
        """Raise Unauthorized unless the credential matches the admin key."""
        if not self._admin_key or credential is None:
            raise Unauthorized()
        if not secrets.compare_digest(
            credential.encode("utf-8"), self._admin_key.encode("utf-8")
        ):
            raise Unauthorized()

    async def admin_adjust(
        self,
        program_id: str,
        credential: Optional[str],
        delta: Optional[int] = None,
        exact: object = None,
    ) -> int:
        """
        Apply a manual adjustment and return the resulting count.

        The credential is checked before anything else, so a bad key never
        reveals whether a program exists. ``exact`` wins over ``delta``;
        a negative delta decrements (floored at zero).
        """
        self.authorize(credential)
        program = self._program(program_id)

        if exact is not None:
            value = parse_count(exact)
            count = await self.store.set_exact(program.id, value)
            action = "set"
        elif delta is not None and delta > 0:
            count = await self.store.increment(program.id, by=delta)
            action = "add"
        elif delta is not None and delta < 0:
            count = await self.store.decrement(program.id, by=-delta)
            action = "cancel"
        else:
            return await self.store.get(program.id)

        notifier.print_counter_change(program.id, action, count, program.limit)
        return count

    async def status_snapshot(self) -> List[StatusRow]:
        """All programs with their counts, in catalog order. Read-only."""
        counts = await self.store.snapshot()
        return [
            StatusRow(
                program_id=program.id,
                display_name=program.display_name,
                count=counts.get(program.id, 0),
                limit=program.limit,
            )
            for program in self.catalog
        ]
