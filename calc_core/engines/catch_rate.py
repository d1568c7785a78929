"""
Pokémon Catch Rate Engine - Pure Functions
==========================================
Gen 3+ capture math: the modified catch rate ``a`` followed by four shake
checks. HP is normalised (max HP = 1) because the calculator only knows the
remaining HP fraction.
"""

import math
from dataclasses import dataclass
from enum import Enum

from calc_core.utils.numeric import clamp


class Status(str, Enum):
    NONE = "none"
    PARALYSIS = "paralysis"
    POISON = "poison"
    BURN = "burn"
    SLEEP = "sleep"
    FREEZE = "freeze"


class Ball(str, Enum):
    POKE = "poke"
    GREAT = "great"
    ULTRA = "ultra"
    MASTER = "master"
    PREMIER = "premier"
    LUXURY = "luxury"
    QUICK = "quick"
    DUSK = "dusk"
    REPEAT = "repeat"
    TIMER = "timer"
    NEST = "nest"
    NET = "net"
    DIVE = "dive"


RULESETS = ("gen1", "gen2", "gen34", "gen5plus", "letsgo", "pla")

# Guaranteed catch; large enough that ``a`` always saturates at 255
MASTER_BALL_MULT = 9999.0

_FIXED_BALLS = {
    Ball.GREAT: 1.5,
    Ball.ULTRA: 2.0,
    Ball.MASTER: MASTER_BALL_MULT,
    # conditional balls assume their condition is met (night/cave, already caught)
    Ball.DUSK: 3.0,
    Ball.REPEAT: 3.0,
}


def status_multiplier(status: Status) -> float:
    """Sleep / freeze 2.0, paralysis / poison / burn 1.5."""
    status = Status(status)
    if status in (Status.SLEEP, Status.FREEZE):
        return 2.0
    if status is Status.NONE:
        return 1.0
    return 1.5


def ball_multiplier(ball: Ball, turn: int = 1) -> float:
    """
    Example:
        >>> ball_multiplier(Ball.QUICK, 1), ball_multiplier(Ball.QUICK, 2)
        (5.0, 1.0)
        >>> ball_multiplier(Ball.TIMER, 11)
        4.0
    """
    ball = Ball(ball)
    if ball is Ball.QUICK:
        return 5.0 if turn <= 1 else 1.0
    if ball is Ball.TIMER:
        return clamp(1 + (turn - 1) * 0.3, 1, 4)
    return _FIXED_BALLS.get(ball, 1.0)


def modified_catch_rate(capture_rate: float, hp_remaining: float, ball_mult: float, status_mult: float) -> float:
    """a = ((3 - 2*hp) * rate * ball * status) / 3, clamped to 0..255."""
    rate = clamp(capture_rate, 0, 255)
    hp = clamp(hp_remaining, 0, 1)
    a = ((3 - 2 * hp) * rate * ball_mult * status_mult) / 3
    return clamp(a, 0, 255)


def capture_probability(a: float) -> float:
    """
    Probability that all four shake checks pass.

    ``b = 1048560 / sqrt(sqrt(16711680 / a))`` and each shake succeeds
    with ``b / 65535``.
    """
    a = clamp(a, 0, 255)
    if a >= 255:
        return 1.0
    if a <= 0:
        return 0.0
    b = 1048560 / math.sqrt(math.sqrt(16711680 / a))
    p = clamp(b / 65535, 0, 1)
    return p ** 4


@dataclass
class CatchResult:
    a_value: float
    ball_mult: float
    status_mult: float
    chance: float
    expected_balls: float  # inf when the chance is 0


def compute_catch_chance(
    capture_rate: float,
    hp_remaining: float,
    ball: Ball = Ball.POKE,
    status: Status = Status.NONE,
    turn: int = 1,
    ruleset: str = "gen5plus",
) -> CatchResult:
    """
    Catch chance for one throw.

    Every ruleset currently shares the Gen 3+ shake math; ``ruleset`` is
    accepted so callers can pass it through unchanged.
    """
    if ruleset not in RULESETS:
        ruleset = "gen5plus"

    ball_mult = ball_multiplier(ball, turn)
    status_mult = status_multiplier(status)
    a = modified_catch_rate(capture_rate, hp_remaining, ball_mult, status_mult)
    chance = capture_probability(a)

    return CatchResult(
        a_value=a,
        ball_mult=ball_mult,
        status_mult=status_mult,
        chance=chance,
        expected_balls=1 / chance if chance > 0 else math.inf,
    )
