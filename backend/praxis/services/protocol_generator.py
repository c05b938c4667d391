"""Protocol Generator: unique human-facing codes for orders and tickets.

Invariants:
    - A code is returned only after the registry reports it unused for its kind
    - A generator never returns the same code twice for one kind, even before the
      owning transaction commits (codes issued in-process are tracked)
    - At most max_attempts candidates are tried; exhaustion raises
      ProtocolGenerationFailedError, never a duplicate
    - insert_with_protocol shares the same budget: a unique-constraint hit on the
      protocol column (another process won the race between check and insert)
      rolls back, draws a fresh code and inserts again
    - Each collision is logged at WARNING with the attempt number

Design Decisions:
    - Only IntegrityErrors that name the protocol column are retried; any other
      constraint failure propagates and get_db maps it to DatabaseError
    - SystemRandom by default; tests inject a seeded Random and a fixed clock
"""

import logging
import random
from typing import Callable, TypeVar

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from praxis.core.domain_types import ProtocolCode, ProtocolKind
from praxis.core.errors import ProtocolGenerationFailedError
from praxis.core.protocol import MAX_PROTOCOL_ATTEMPTS, build_protocol_candidate
from praxis.core.repository_protocols import Clock, ProtocolRegistry
from praxis.db.base import Base
from praxis.infrastructure.clock import utc_now

logger = logging.getLogger(__name__)

RowT = TypeVar("RowT", bound=Base)


def is_protocol_conflict(exc: IntegrityError) -> bool:
    """True when the violated constraint is a protocol uniqueness constraint."""
    return "protocol" in str(exc.orig).lower()


class ProtocolGenerator:
    """Draws candidates from core.protocol and checks them against a registry."""

    def __init__(
        self,
        registry: ProtocolRegistry,
        clock: Clock = utc_now,
        rng: random.Random | None = None,
        max_attempts: int = MAX_PROTOCOL_ATTEMPTS,
    ):
        self.registry = registry
        self.clock = clock
        self.rng = rng or random.SystemRandom()
        self.max_attempts = max_attempts
        self._issued: dict[ProtocolKind, set[str]] = {
            kind: set() for kind in ProtocolKind
        }

    async def generate(self, kind: ProtocolKind) -> ProtocolCode:
        for attempt in range(1, self.max_attempts + 1):
            candidate = build_protocol_candidate(kind, self.clock(), self.rng)
            taken = (
                candidate in self._issued[kind]
                or await self.registry.protocol_exists(kind, candidate)
            )
            if not taken:
                self._issued[kind].add(candidate)
                return candidate
            logger.warning(
                f"Protocol collision on {candidate}",
                extra={"protocol": candidate, "attempt": attempt},
            )

        raise self._exhausted(kind)

    async def insert_with_protocol(
        self,
        db: AsyncSession,
        kind: ProtocolKind,
        build: Callable[[ProtocolCode], RowT],
    ) -> RowT:
        """Build a row around a fresh code and commit it; redraw on a protocol clash.

        build is called once per attempt and must return a NEW row each time:
        the rollback after a clash discards the previous one.
        """
        for attempt in range(1, self.max_attempts + 1):
            row = build(await self.generate(kind))
            db.add(row)
            try:
                await db.commit()
            except IntegrityError as exc:
                await db.rollback()
                if not is_protocol_conflict(exc):
                    raise
                logger.warning(
                    f"Protocol {row.protocol} taken at insert, drawing again",
                    extra={"protocol": row.protocol, "attempt": attempt},
                )
                continue
            await db.refresh(row)
            return row

        raise self._exhausted(kind)

    def _exhausted(self, kind: ProtocolKind) -> ProtocolGenerationFailedError:
        logger.error(
            f"Protocol generation exhausted for {kind.value}",
            extra={"attempt": self.max_attempts},
        )
        return ProtocolGenerationFailedError(kind.value, self.max_attempts)
