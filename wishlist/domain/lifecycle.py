"""Movie lifecycle rules.

Pure functions — no I/O. The lifecycle service loads the current item, calls
these to validate the requested change, and only then persists.

Transition table (target ← allowed current states):

    Watched                      ← any state
    Rated                        ← Watched, Rated, Recommended, NotRecommended
    Recommended / NotRecommended ← Rated, Recommended, NotRecommended
    Queued                       ← never (initial state only)

Rating is allowed in every state except Queued. Rating does not move the item
to Rated; a caller rates a Watched item and then transitions it separately.
"""

from __future__ import annotations

import math
from numbers import Real
from typing import Union

from wishlist.domain.exceptions import InvalidArgumentError, InvalidTransitionError
from wishlist.domain.models import MovieState

MIN_RATING = 0.0
MAX_RATING = 5.0

CREATED_ACTION = "added to wishlist"

_AT_LEAST_RATED: frozenset[MovieState] = frozenset(
    {MovieState.RATED, MovieState.RECOMMENDED, MovieState.NOT_RECOMMENDED}
)

_ALLOWED_FROM: dict[MovieState, frozenset[MovieState]] = {
    MovieState.QUEUED: frozenset(),
    MovieState.WATCHED: frozenset(MovieState),
    MovieState.RATED: frozenset({MovieState.WATCHED}) | _AT_LEAST_RATED,
    MovieState.RECOMMENDED: _AT_LEAST_RATED,
    MovieState.NOT_RECOMMENDED: _AT_LEAST_RATED,
}


def parse_state(value: Union[MovieState, str]) -> MovieState:
    """Return the MovieState named by ``value``.

    Raises:
        InvalidArgumentError: ``value`` is not one of the five state names.
    """
    if isinstance(value, MovieState):
        return value
    try:
        return MovieState(value)
    except ValueError as exc:
        valid = ", ".join(s.value for s in MovieState)
        raise InvalidArgumentError(
            f"Unknown state {value!r}; expected one of: {valid}"
        ) from exc


def can_transition(current: MovieState, target: MovieState) -> bool:
    return current in _ALLOWED_FROM[target]


def check_transition(current: MovieState, target: MovieState) -> None:
    """Raise InvalidTransitionError if ``current`` may not move to ``target``."""
    if can_transition(current, target):
        return

    if target is MovieState.QUEUED:
        reason = "a movie cannot be moved back to Queued"
    elif target is MovieState.RATED:
        reason = "the movie must be watched before it is rated"
    else:
        reason = "the movie must be rated before it is recommended or not recommended"

    raise InvalidTransitionError(
        f"Cannot move from {current.value} to {target.value}: {reason}"
    )


def check_can_rate(current: MovieState) -> None:
    """Raise InvalidTransitionError if a movie in ``current`` may not be rated."""
    if current is MovieState.QUEUED:
        raise InvalidTransitionError(
            "Cannot rate a Queued movie: the movie must be watched before it is rated"
        )


def validate_rating(value: object) -> float:
    """Return ``value`` as a float if it is a finite number in [0, 5].

    Raises:
        InvalidArgumentError: non-numeric, boolean, NaN, infinite or out of range.
    """
    # bool is a Real subclass; True must not silently become a rating of 1.
    if isinstance(value, bool) or not isinstance(value, Real):
        raise InvalidArgumentError(f"Rating must be a number, got {value!r}")

    rating = float(value)
    if math.isnan(rating) or not MIN_RATING <= rating <= MAX_RATING:
        raise InvalidArgumentError(
            f"Rating must be between {MIN_RATING:g} and {MAX_RATING:g}, got {value!r}"
        )
    return rating


def transition_action(state: MovieState) -> str:
    return f"moved to state: {state.value}"


def rating_action(rating: float) -> str:
    # Full stored value; only a whole number loses its ".0".
    return f"rated: {int(rating) if rating.is_integer() else rating}"
