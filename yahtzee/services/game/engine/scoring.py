"""Scoring rules - pure functions from a five-die roll to a category score.

Every function is total over all rolls and never returns a negative score.
"""

from collections.abc import Callable, Mapping, Sequence

from yahtzee.schemas.game_engine import Category

BONUS_THRESHOLD = 63
BONUS_SCORE = 50
SMALL_STRAIGHT_SCORE = 15
LARGE_STRAIGHT_SCORE = 20
YAHTZEE_SCORE = 50

Roll = Sequence[int]


NUMBER_CATEGORIES: dict[Category, int] = {
    Category.ONES: 1,
    Category.TWOS: 2,
    Category.THREES: 3,
    Category.FOURS: 4,
    Category.FIVES: 5,
    Category.SIXES: 6,
}

COMBINATION_CATEGORIES: list[Category] = [
    category for category in Category if category not in NUMBER_CATEGORIES
]


def count_dice(target: int, roll: Roll) -> int:
    return sum(1 for die in roll if die == target)


def of_a_kind(count: int, roll: Roll) -> int:
    """Highest die value appearing at least ``count`` times, or 0."""
    for value in range(6, 0, -1):
        if count_dice(value, roll) >= count:
            return value
    return 0


def _two_kinds(top_count: int, bottom_count: int, roll: Roll) -> int:
    # All dice of the top value are removed before looking for the second group,
    # so four or five of a kind never counts as two groups.
    top = of_a_kind(top_count, roll)
    if top == 0:
        return 0
    bottom = of_a_kind(bottom_count, [die for die in roll if die != top])
    if bottom == 0:
        return 0
    return top_count * top + bottom_count * bottom


def _straight(start: int, score: int, roll: Roll) -> int:
    expected = list(range(start, start + len(roll)))
    return score if sorted(roll) == expected else 0


def number_score(target: int, roll: Roll) -> int:
    return count_dice(target, roll) * target


def pair_score(roll: Roll) -> int:
    return of_a_kind(2, roll) * 2


def two_pairs_score(roll: Roll) -> int:
    return _two_kinds(2, 2, roll)


def three_of_a_kind_score(roll: Roll) -> int:
    return of_a_kind(3, roll) * 3


def four_of_a_kind_score(roll: Roll) -> int:
    return of_a_kind(4, roll) * 4


def full_house_score(roll: Roll) -> int:
    return _two_kinds(3, 2, roll)


def small_straight_score(roll: Roll) -> int:
    return _straight(1, SMALL_STRAIGHT_SCORE, roll)


def large_straight_score(roll: Roll) -> int:
    return _straight(2, LARGE_STRAIGHT_SCORE, roll)


def chance_score(roll: Roll) -> int:
    return sum(roll)


def yahtzee_score(roll: Roll) -> int:
    return YAHTZEE_SCORE if of_a_kind(5, roll) > 0 else 0


_COMBINATION_SCORERS: dict[Category, Callable[[Roll], int]] = {
    Category.PAIR: pair_score,
    Category.TWO_PAIRS: two_pairs_score,
    Category.THREE_OF_A_KIND: three_of_a_kind_score,
    Category.FOUR_OF_A_KIND: four_of_a_kind_score,
    Category.FULL_HOUSE: full_house_score,
    Category.SMALL_STRAIGHT: small_straight_score,
    Category.LARGE_STRAIGHT: large_straight_score,
    Category.CHANCE: chance_score,
    Category.YAHTZEE: yahtzee_score,
}


def score(category: Category, roll: Roll) -> int:
    """Score ``roll`` in ``category``."""
    if category in NUMBER_CATEGORIES:
        return number_score(NUMBER_CATEGORIES[category], roll)
    return _COMBINATION_SCORERS[category](roll)


# Scorecard projections over a category -> optional score mapping


def upper_sum(scores: Mapping[Category, int | None]) -> int:
    return sum(scores.get(category) or 0 for category in NUMBER_CATEGORIES)


def bonus(scores: Mapping[Category, int | None]) -> int:
    return BONUS_SCORE if upper_sum(scores) >= BONUS_THRESHOLD else 0


def lower_sum(scores: Mapping[Category, int | None]) -> int:
    return sum(scores.get(category) or 0 for category in COMBINATION_CATEGORIES)


def total(scores: Mapping[Category, int | None]) -> int:
    return upper_sum(scores) + bonus(scores) + lower_sum(scores)


def is_complete(scores: Mapping[Category, int | None]) -> bool:
    return all(scores.get(category) is not None for category in Category)
