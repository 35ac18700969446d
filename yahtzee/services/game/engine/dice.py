"""Dice rolling and player shuffling on top of a pluggable randomizer."""

import logging
import random
from collections.abc import Iterable, Sequence
from typing import Protocol

logger = logging.getLogger(__name__)

DIE_FACES = 6
DICE_COUNT = 5


class Randomizer(Protocol):
    """Source of unsigned integers, injected so outcomes are reproducible."""

    def next(self, n: int) -> int:
        """Return an integer in [0, n)."""
        ...


class StandardRandomizer:
    """Randomizer backed by ``random.Random``; seedable for replays."""

    def __init__(self, seed: int | None = None):
        self._random = random.Random(seed)

    def next(self, n: int) -> int:
        return self._random.randrange(n)


def roll_die(randomizer: Randomizer) -> int:
    return randomizer.next(DIE_FACES) + 1


def roll_dice(randomizer: Randomizer, count: int = DICE_COUNT) -> list[int]:
    """Roll ``count`` fresh dice, drawn left to right."""
    return [roll_die(randomizer) for _ in range(count)]


def reroll_dice(roll: Sequence[int], held: Iterable[int], randomizer: Randomizer) -> list[int]:
    """Replace every die whose position is not held.

    Positions are drawn left to right so a scripted randomizer maps onto the
    non-held positions in order.
    """
    held_positions = set(held)
    new_roll = [
        die if index in held_positions else roll_die(randomizer)
        for index, die in enumerate(roll)
    ]
    logger.debug("Reroll: held=%s, %s -> %s", sorted(held_positions), list(roll), new_roll)
    return new_roll


def shuffle[T](items: Sequence[T], randomizer: Randomizer) -> list[T]:
    """Forward Fisher-Yates shuffle returning a new list."""
    shuffled = list(items)
    n = len(shuffled)
    for i in range(n - 1):
        j = i + randomizer.next(n - i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled
