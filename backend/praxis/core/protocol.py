"""Protocol Codes: candidate generation for order and ticket protocols.

Invariants:
    - Format is <PREFIX>-<YYYYMMDD>-<SUFFIX>, e.g. ORD-20261018-K7QM2X
    - PREFIX is fixed per ProtocolKind; SUFFIX draws from an alphabet without 0/O/1/I/L
    - build_protocol_candidate is PURE given its clock value and RNG
    - Uniqueness is NOT decided here; the shell checks the store and retries
"""

import random
from datetime import datetime

from praxis.core.domain_types import ProtocolCode, ProtocolKind

PROTOCOL_PREFIXES: dict[ProtocolKind, str] = {
    ProtocolKind.ORDER: "ORD",
    ProtocolKind.TICKET: "SRV",
}
SUFFIX_ALPHABET = "23456789ABCDEFGHJKMNPQRSTUVWXYZ"
SUFFIX_LENGTH = 6
MAX_PROTOCOL_ATTEMPTS = 5


def build_protocol_candidate(
    kind: ProtocolKind, now: datetime, rng: random.Random,
) -> ProtocolCode:
    suffix = "".join(rng.choice(SUFFIX_ALPHABET) for _ in range(SUFFIX_LENGTH))
    return ProtocolCode(f"{PROTOCOL_PREFIXES[kind]}-{now:%Y%m%d}-{suffix}")

