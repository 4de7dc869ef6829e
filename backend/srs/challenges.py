"""Daily speaking challenge selection.

Which challenge a learner gets on a given day is a strategy, so the
randomness can be swapped out (or seeded) without touching the service.
"""

import hashlib
import random
from collections.abc import Sequence
from datetime import date
from typing import Protocol, TypeVar

T = TypeVar("T")


class ChallengePicker(Protocol):
    def pick(self, candidates: Sequence[T], day: date) -> T:
        """Choose one of ``candidates`` (never empty) for ``day``."""
        ...


class RandomPicker:
    """Uniform random choice, optionally from a seeded generator."""

    def __init__(self, rng: random.Random | None = None) -> None:
        self.rng = rng or random.Random()

    def pick(self, candidates: Sequence[T], day: date) -> T:
        return self.rng.choice(candidates)


class DailyRotationPicker:
    """Stable choice per calendar day: same day, same challenge."""

    def __init__(self, salt: str = "") -> None:
        self.salt = salt

    def pick(self, candidates: Sequence[T], day: date) -> T:
        digest = hashlib.sha256(f"{self.salt}{day.isoformat()}".encode()).digest()
        return candidates[int.from_bytes(digest[:8], "big") % len(candidates)]
