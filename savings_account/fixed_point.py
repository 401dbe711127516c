"""Pure fixed-point rate functions — no I/O.

Every quantity is a non-negative integer scaled by ``BP`` (``BP`` == 1.0).
Division truncates, and the order of operations below is part of the
contract: intermediate truncation changes results.
"""
from __future__ import annotations

BP = 1_000_000_000
SECONDS_IN_YEAR = 31_556_926


def capital_utilisation(borrowed_amount: int, total_pool_reserves: int) -> int:
    """Share of the pool that is lent out.

    Raises ZeroDivisionError when ``total_pool_reserves`` is 0; callers guard.
    """
    return borrowed_amount * BP // total_pool_reserves


def borrow_rate(
    r_base: int,
    r_slope1: int,
    r_slope2: int,
    u_optimal: int,
    u_current: int,
) -> int:
    """Kinked utilisation curve.

    Below ``u_optimal`` the rate climbs along ``r_slope1``; above it along the
    much steeper ``r_slope2``. Both branches give ``r_base + r_slope1`` at the kink.
    """
    if u_current < u_optimal:
        return r_base + u_current * r_slope1 // u_optimal

    numerator = (u_current - u_optimal) * r_slope2
    denominator = BP - u_optimal
    return r_base + r_slope1 + numerator // denominator


def deposit_rate(u_current: int, borrow_rate: int, reserve_factor: int) -> int:
    """Rate paid to lenders.

    Utilisation is applied twice (u * u * borrow_rate); payouts depend on it.
    """
    loan_ratio = u_current * borrow_rate
    rate = u_current * loan_ratio * (BP - reserve_factor)
    return rate // (BP * BP * BP)


def accrued_debt(amount: int, time_diff: int, borrow_rate: int) -> int:
    """Interest owed on ``amount`` after ``time_diff`` seconds (interest only)."""
    time_unit_percentage = time_diff * BP // SECONDS_IN_YEAR
    debt_percentage = time_unit_percentage * borrow_rate // BP
    return debt_percentage * amount // BP


def accrued_withdrawal(amount: int, time_diff: int, deposit_rate: int) -> int:
    """Principal plus interest for a deposit held ``time_diff`` seconds."""
    percentage = time_diff * deposit_rate // SECONDS_IN_YEAR
    return amount + percentage * amount // BP
