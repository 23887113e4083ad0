"""Financial health score - four weighted components, grade and insights"""

import math
from datetime import date
from typing import Dict, List

from cashflow_core.domain.balance import effective_amount, group_by_date, signed_amount
from cashflow_core.domain.models import (
    UNREALIZED_STATUSES,
    DayBalance,
    HealthScoreBreakdown,
    Transaction,
)
from cashflow_core.utils.date_utils import add_days, today

RUNWAY_HORIZON_DAYS = 90

# Component weights: runway 30%, savings 30%, bill payment 20%, trend 20%
WEIGHTS = {
    "runway": 0.3,
    "savings_rate": 0.3,
    "bill_payment_rate": 0.2,
    "balance_trend": 0.2,
}

MAX_INSIGHTS = 3
TREND_THRESHOLD_PERCENT = 0.5


def _round_half_up(value: float) -> int:
    """Round half up: 12.5 → 13, 13.5 → 14"""
    return math.floor(value + 0.5)


def calculate_runway_score(
    current_balance: float,
    transactions: List[Transaction],
    as_of: date | None = None,
) -> tuple[int, int]:
    """
    Score days until the balance turns negative over a 90-day look-ahead.

    Bands: >=90 → 100, >=60 → 80, >=30 → 60, >=14 → 40, >=7 → 20, else 0.

    Returns: (score, days_remaining)
    """
    start = as_of or today()
    by_date = group_by_date(t for t in transactions if t.status in UNREALIZED_STATUSES)

    balance = current_balance
    days_remaining = 0
    for i in range(RUNWAY_HORIZON_DAYS):
        for txn in by_date.get(add_days(start, i), []):
            balance += signed_amount(txn)
        if balance < 0:
            days_remaining = i
            break
        days_remaining = i + 1

    if days_remaining >= 90:
        score = 100
    elif days_remaining >= 60:
        score = 80
    elif days_remaining >= 30:
        score = 60
    elif days_remaining >= 14:
        score = 40
    elif days_remaining >= 7:
        score = 20
    else:
        score = 0

    return score, days_remaining


def calculate_savings_rate_score(
    transactions: List[Transaction],
    start: date,
    end: date,
) -> tuple[int, float, bool]:
    """
    Score (income - expenses) / income over the period.

    Bands: >=30% → 100, >=20% → 80, >=10% → 60, >=5% → 40, >=0% → 20,
    negative → 0. A period with no income and no expenses is not
    penalized: rate 0, score 100. Spending with no income is a -100% rate.

    Returns: (score, rate_percent, has_activity)
    """
    total_income = 0.0
    total_expenses = 0.0
    for txn in transactions:
        if txn.status == "skipped" or not (start <= txn.effective_date <= end):
            continue
        if txn.is_income:
            total_income += effective_amount(txn)
        else:
            total_expenses += effective_amount(txn)

    if total_income == 0 and total_expenses == 0:
        return 100, 0.0, False

    if total_income > 0:
        rate = (total_income - total_expenses) / total_income * 100
    else:
        rate = -100.0

    if rate >= 30:
        score = 100
    elif rate >= 20:
        score = 80
    elif rate >= 10:
        score = 60
    elif rate >= 5:
        score = 40
    elif rate >= 0:
        score = 20
    else:
        score = 0

    return score, rate, True


def calculate_bill_payment_score(
    transactions: List[Transaction],
    start: date,
    end: date,
    as_of: date | None = None,
) -> tuple[int, float]:
    """
    Share of past-due outflows that were completed on or before their date.

    Only outflows scheduled in [start, end] and not after ``as_of`` that
    have left ``projected`` status count. No qualifying bills is a perfect
    record.

    Returns: (score, rate_percent)
    """
    cutoff = as_of or today()
    past_bills = [
        t
        for t in transactions
        if not t.is_income
        and t.status != "projected"
        and start <= t.scheduled_date <= end
        and t.scheduled_date <= cutoff
    ]

    if not past_bills:
        return 100, 100.0

    on_time = sum(
        1 for t in past_bills if t.status == "completed" and t.effective_date <= t.scheduled_date
    )
    rate = on_time / len(past_bills) * 100
    return _round_half_up(rate), rate


def calculate_balance_trend_score(
    daily_balances: Dict[date, DayBalance],
    start: date,
    end: date,
) -> tuple[int, str]:
    """
    Least-squares slope of daily closing balances, relative to the mean.

    Normalized slope > +0.5% per day is improving (score 70-100),
    < -0.5% is declining (score 0-30), anything else is stable (50).
    Fewer than two data points is stable.

    Returns: (score, trend)
    """
    balances = [
        daily_balances[day].closing_balance
        for day in sorted(daily_balances)
        if start <= day <= end
    ]

    n = len(balances)
    if n < 2:
        return 50, "stable"

    sum_x = sum(range(n))
    sum_y = sum(balances)
    sum_xy = sum(i * balance for i, balance in enumerate(balances))
    sum_x2 = sum(i * i for i in range(n))

    slope = (n * sum_xy - sum_x * sum_y) / (n * sum_x2 - sum_x * sum_x)

    # Mean magnitude keeps the sign of the slope meaningful for negative balances
    avg_balance = abs(sum_y / n)
    normalized_slope = (slope / avg_balance) * 100 if avg_balance else 0.0

    if normalized_slope > TREND_THRESHOLD_PERCENT:
        return _round_half_up(min(100.0, 70 + normalized_slope * 10)), "improving"
    if normalized_slope < -TREND_THRESHOLD_PERCENT:
        return _round_half_up(max(0.0, 30 + normalized_slope * 10)), "declining"
    return 50, "stable"


def generate_insights(
    runway_days: int,
    savings_rate: float,
    has_activity: bool,
    bill_payment_rate: float,
    trend: str,
) -> List[str]:
    """Pick up to three insights, evaluated runway → savings → bills → trend"""
    insights: List[str] = []

    if runway_days < 14:
        insights.append("Your cash runway is critically low. Consider reducing expenses.")
    elif runway_days < 30:
        insights.append("Your cash runway is low. Try to build a buffer.")
    elif runway_days >= 90:
        insights.append("Great cash runway! You have 90+ days of expenses covered.")

    if not has_activity:
        insights.append("No income or expenses recorded for this period.")
    elif savings_rate < 0:
        insights.append("You're spending more than you earn. Review your expenses.")
    elif savings_rate < 10:
        insights.append("Try to increase your savings rate to at least 10%.")
    elif savings_rate >= 20:
        insights.append("Excellent savings rate! You're building wealth effectively.")

    if bill_payment_rate < 80:
        insights.append("Improve bill payment timing to avoid late fees.")
    elif bill_payment_rate == 100:
        insights.append("Perfect bill payment record!")

    if trend == "declining":
        insights.append("Your balance is trending downward. Monitor your spending.")
    elif trend == "improving":
        insights.append("Your balance is trending upward. Keep it up!")

    return insights[:MAX_INSIGHTS]


def get_grade(score: float) -> str:
    if score >= 90:
        return "A"
    elif score >= 80:
        return "B"
    elif score >= 70:
        return "C"
    elif score >= 60:
        return "D"
    return "F"


def get_score_color(score: float) -> str:
    if score >= 80:
        return "#22c55e"  # green
    elif score >= 60:
        return "#eab308"  # yellow
    elif score >= 40:
        return "#f97316"  # orange
    return "#ef4444"  # red


def calculate_health_score(
    current_balance: float,
    transactions: List[Transaction],
    daily_balances: Dict[date, DayBalance],
    start: date,
    end: date,
    as_of: date | None = None,
) -> HealthScoreBreakdown:
    """
    Main entry point: combine the four component scores into one 0-100 score.

    Returns the overall score with grade, UI color, per-component scores,
    the raw component measurements and up to three insights.
    """
    runway_score, runway_days = calculate_runway_score(current_balance, transactions, as_of)
    savings_score, savings_rate, has_activity = calculate_savings_rate_score(transactions, start, end)
    bill_score, bill_rate = calculate_bill_payment_score(transactions, start, end, as_of)
    trend_score, trend = calculate_balance_trend_score(daily_balances, start, end)

    components = {
        "runway": runway_score,
        "savings_rate": savings_score,
        "bill_payment_rate": bill_score,
        "balance_trend": trend_score,
    }
    score = _round_half_up(sum(components[name] * weight for name, weight in WEIGHTS.items()))

    return HealthScoreBreakdown(
        score=score,
        grade=get_grade(score),
        color=get_score_color(score),
        components=components,
        insights=generate_insights(runway_days, savings_rate, has_activity, bill_rate, trend),
        savings_rate=savings_rate,
        runway_days=runway_days,
        bill_payment_rate=bill_rate,
        trend=trend,
    )
