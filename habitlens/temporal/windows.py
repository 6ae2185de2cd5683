"""Time windowing and pattern-distribution comparison.

Observations for one (language, pattern type) pair are cut into fixed
width, non-overlapping, half-open windows ``[t, t + W)`` anchored at the
first observation. Each window is reduced to a count of accepted pattern
labels, and adjacent windows are compared for a label whose share dropped
sharply while another label's share grew.
"""

from __future__ import annotations

import math
from collections import Counter
from collections.abc import Mapping, Sequence

from habitlens.temporal.models import (
    SECONDS_PER_DAY,
    FeedbackAction,
    PatternObservation,
    Transition,
)

# Share movements are compared with a tolerance so exact boundary values
# (1.0 - 0.7 is 0.30000000000000004) do not qualify through rounding.
_EPSILON = 1e-9


def create_time_windows(
    observations: Sequence[PatternObservation],
    window_size_days: float,
) -> list[list[PatternObservation]]:
    """Partition chronologically sorted observations into non-empty windows."""
    if not observations:
        return []
    if window_size_days <= 0:
        raise ValueError(f"window_size_days must be positive, got {window_size_days}")

    width = window_size_days * SECONDS_PER_DAY
    start = observations[0].timestamp
    buckets: dict[int, list[PatternObservation]] = {}
    for obs in observations:
        index = math.floor((obs.timestamp - start) / width)
        buckets.setdefault(index, []).append(obs)
    return [buckets[i] for i in sorted(buckets)]


def calculate_pattern_distribution(window: Sequence[PatternObservation]) -> dict[str, int]:
    """Count accepted observations per pattern label."""
    return dict(Counter(obs.pattern for obs in window if obs.action == FeedbackAction.ACCEPT))


def find_significant_changes(
    prev: Mapping[str, int],
    current: Mapping[str, int],
    *,
    threshold: float = 0.3,
    increase_ratio: float = 0.5,
) -> list[Transition]:
    """Return candidate transitions, highest confidence first.

    A label qualifies as abandoned when its share fell by more than
    ``threshold``. Every other label in ``current`` whose share rose by more
    than ``threshold * increase_ratio`` is paired with it; the pair's
    confidence is the smaller of the two movements.
    """
    total_prev = sum(prev.values())
    total_current = sum(current.values())
    if total_prev <= 0 or total_current <= 0:
        return []

    min_increase = threshold * increase_ratio
    changes: list[Transition] = []
    for pattern, prev_count in prev.items():
        decrease = prev_count / total_prev - current.get(pattern, 0) / total_current
        if decrease <= threshold + _EPSILON:
            continue
        for new_pattern, new_count in current.items():
            if new_pattern == pattern:
                continue
            increase = new_count / total_current - prev.get(new_pattern, 0) / total_prev
            if increase > min_increase + _EPSILON:
                changes.append(Transition(pattern, new_pattern, min(decrease, increase)))

    changes.sort(key=lambda t: t.confidence, reverse=True)
    return changes
