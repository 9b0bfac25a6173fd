# app/core/money.py
import math


def round_money(value: float) -> float:
    """
    Round to cents with halves away from zero (10.125 -> 10.13, -0.125 -> -0.13).

    Not round(): that sends exact halves to the even digit.
    """
    cents = value * 100
    whole = math.trunc(cents)
    if abs(cents - whole) >= 0.5:
        whole += math.copysign(1, cents)
    return whole / 100
