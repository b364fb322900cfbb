import math
from typing import Dict, Optional

BASE_POINTS = 100
SPEED_BONUS_PER_SEC = 5


def score_answer(is_correct: bool, elapsed: float, round_duration: float) -> int:
    """Points for one answer.

    0 when wrong; otherwise 100 plus 5 per second left on the clock, so an
    instant correct answer earns 150 and one at the buzzer earns 100.
    """
    if not is_correct:
        return 0
    elapsed = min(max(elapsed, 0.0), float(round_duration))
    remaining = max(0.0, round_duration - elapsed)
    # half-up rounding, so 2.5s left is 113 and not 112
    return int(math.floor(BASE_POINTS + remaining * SPEED_BONUS_PER_SEC + 0.5))


def decide_winner(scores: Dict[str, int]) -> Optional[str]:
    """Return the key with the strictly highest score, or None on a tie."""
    if not scores:
        return None
    ranked = sorted(scores.items(), key=lambda kv: kv[1], reverse=True)
    if len(ranked) > 1 and ranked[0][1] == ranked[1][1]:
        return None
    return ranked[0][0]
