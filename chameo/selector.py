"""
Candidate Selector

Pick a candidate that is at least as large as the minimum resolution. The catalog's toplist is
not filtered by size, so we keep drawing random entries until one is big enough or we run out
of attempts.

Draws are made with replacement: the same candidate can come up more than once and counts as
an attempt each time. Keep it that way, switching to sampling without replacement changes how
many attempts a run takes to succeed.

select() does no I/O. The random source is a parameter so tests can drive it.
"""

import random
from dataclasses import dataclass
from dataclasses import field
from typing import Union

from chameo.catalog_handler import Candidate
from chameo.errors import EmptyCatalog
from chameo.errors import ResolutionExhausted


MAX_ATTEMPTS = 10


@dataclass(frozen=True)
class Accepted:
    candidate: Candidate
    attempts: int


@dataclass(frozen=True)
class Exhausted:
    attempts: int
    rejected: tuple = field(default_factory=tuple)


@dataclass(frozen=True)
class Empty:
    attempts: int = 0


Selection = Union[Accepted, Exhausted, Empty]


def meets_resolution(candidate: Candidate, min_width: int, min_height: int) -> bool:
    return candidate.width >= min_width and candidate.height >= min_height


def select(
    candidates: list[Candidate],
    min_width: int,
    min_height: int,
    max_attempts: int = MAX_ATTEMPTS,
    rng: random.Random = random,
) -> Selection:
    """
    Draw up to max_attempts random candidates and return the first one meeting both
    minimums as Accepted. Returns Exhausted if none did, or Empty if there was nothing to
    draw from.
    """

    if not candidates:
        return Empty()

    rejected = []

    for attempt in range(1, max_attempts + 1):
        candidate = candidates[rng.randrange(len(candidates))]

        if meets_resolution(candidate, min_width, min_height):
            return Accepted(candidate=candidate, attempts=attempt)

        rejected.append(candidate)

    return Exhausted(attempts=max_attempts, rejected=tuple(rejected))


def require(selection: Selection, min_width: int, min_height: int) -> Candidate:
    """
    Unwrap a Selection, raising the matching FetchError for Empty or Exhausted results.
    """

    if isinstance(selection, Accepted):
        return selection.candidate

    if isinstance(selection, Empty):
        raise EmptyCatalog("No wallpapers found matching the criteria.")

    raise ResolutionExhausted(
        f"Could not find a wallpaper with at least {min_width}x{min_height} resolution "
        f"after {selection.attempts} attempts."
    )
