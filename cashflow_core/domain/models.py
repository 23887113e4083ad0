"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, List, Literal, Optional

TransactionType = Literal["income", "expense", "bill", "loan"]
TransactionStatus = Literal["projected", "pending", "completed", "partial", "skipped"]
SourceType = Literal["manual", "income_source", "expense_rule"]
BalanceStatus = Literal["safe", "warning", "danger"]
TrendDirection = Literal["improving", "stable", "declining"]

TRANSACTION_TYPES = ("income", "expense", "bill", "loan")
TRANSACTION_STATUSES = ("projected", "pending", "completed", "partial", "skipped")
SOURCE_TYPES = ("manual", "income_source", "expense_rule")
FREQUENCIES = (
    "daily",
    "weekly",
    "bi-weekly",
    "semi-monthly",
    "monthly",
    "quarterly",
    "yearly",
    "one-time",
)

# Statuses whose amount is already reflected in the account balance
REALIZED_STATUSES = frozenset({"completed", "partial"})
UNREALIZED_STATUSES = frozenset({"projected", "pending"})


@dataclass
class PaymentBreakdown:
    """Principal/interest split for an amortized loan payment"""

    payment_number: int
    principal_paid: float
    interest_paid: float


@dataclass
class Transaction:
    """Scheduled or realized cash movement"""

    id: str
    user_id: str
    name: str
    type: str  # income | expense | bill | loan
    category: str
    projected_amount: float
    scheduled_date: date
    status: str = "projected"
    source_type: str = "manual"
    source_id: Optional[str] = None
    actual_amount: Optional[float] = None
    actual_date: Optional[date] = None
    variance: Optional[float] = None
    completed_at: Optional[datetime] = None
    notes: Optional[str] = None
    parent_transaction_id: Optional[str] = None
    payment_breakdown: Optional[PaymentBreakdown] = None

    @property
    def is_income(self) -> bool:
        return self.type == "income"

    @property
    def is_realized(self) -> bool:
        return self.status in REALIZED_STATUSES

    @property
    def effective_date(self) -> date:
        """Date the movement lands on: actual date once realized, else scheduled"""
        return self.actual_date or self.scheduled_date


@dataclass
class LoanConfig:
    principal: float
    annual_rate: float  # percent, e.g. 5.5
    term_months: int
    monthly_payment: float
    current_balance: float
    payments_made: int = 0


@dataclass
class CreditConfig:
    current_balance: float
    credit_limit: float
    apr: float  # percent
    minimum_payment_percent: float
    minimum_payment_floor: float = 25.0
    minimum_payment_method: str = "percent_only"  # percent_only | percent_plus_interest
    payment_strategy: str = "minimum"  # minimum | fixed | full_balance
    fixed_payment_amount: Optional[float] = None
    due_day: Optional[int] = None


@dataclass
class InstallmentConfig:
    installment_count: int
    installments_paid: int = 0
    total_amount: Optional[float] = None


@dataclass
class ExpenseRule:
    """Recurring expense template"""

    id: str
    user_id: str
    name: str
    category: str
    amount: float
    frequency: str
    is_active: bool = True
    loan_config: Optional[LoanConfig] = None
    credit_config: Optional[CreditConfig] = None
    installment_config: Optional[InstallmentConfig] = None


@dataclass
class IncomeSource:
    """Recurring income template"""

    id: str
    user_id: str
    name: str
    category: str
    amount: float
    frequency: str
    is_active: bool = True
    is_variable_amount: bool = False


@dataclass
class UserProfile:
    """Balance aspect of a user profile; current_balance is a cache"""

    user_id: str
    initial_balance: float
    current_balance: float
    balance_last_updated_at: Optional[date] = None
    warning_threshold: float = 500.0


@dataclass
class DayBalance:
    date: date
    opening_balance: float
    closing_balance: float
    total_income: float
    total_expenses: float
    transactions: List[Transaction]
    status: str  # safe | warning | danger


@dataclass
class AmortizationStep:
    date: date
    payment: float
    principal: float
    interest: float
    remaining_balance: float


@dataclass
class CreditCardProjectionConfig:
    current_balance: float
    apr: float
    min_payment_percentage: float
    start_date: date
    months_to_project: int = 12
    min_payment_floor: float = 25.0
    min_payment_method: str = "percent_only"
    due_day: Optional[int] = None  # day of month, 1-31


@dataclass
class MonthlyBreakdown:
    month: int
    date: date
    payment: float
    principal: float
    interest: float
    remaining_balance: float
    cumulative_interest: float
    cumulative_principal: float


@dataclass
class PayoffScenario:
    name: str
    monthly_payment: float
    months_to_payoff: int
    total_interest: float
    total_amount: float
    interest_savings: float
    time_savings_months: int


@dataclass
class CreditCardPayoffSummary:
    """Payoff outlook; infinite figures mean the balance never reaches zero"""

    payoff_date: Optional[date]
    months_to_payoff: float
    years_to_payoff: float
    total_amount_to_pay: float
    total_interest_to_pay: float
    current_monthly_interest: float
    effective_monthly_payment: float
    principal_paid_so_far: float
    interest_paid_so_far: float
    is_minimum_payment_trap: bool
    scenarios: List[PayoffScenario] = field(default_factory=list)


@dataclass
class UpcomingBill:
    transaction: Transaction
    days_until_due: int
    can_cover: bool
    shortfall: Optional[float] = None


@dataclass
class Shortfall:
    date: date
    amount: float
    bill_name: str


@dataclass
class BillCoverageReport:
    current_balance: float
    upcoming_bills: List[UpcomingBill]
    bills_at_risk: List[UpcomingBill]
    total_upcoming: float
    projected_balance: float
    can_cover_all: bool
    first_shortfall: Optional[Shortfall] = None


@dataclass
class Runway:
    days: int
    run_out_date: Optional[date]


@dataclass
class Crunch:
    date: date
    shortfall: float


@dataclass
class VarianceLine:
    projected: float
    actual: float
    variance: float
    variance_percent: float


@dataclass
class CategoryVariance:
    category: str
    projected: float
    actual: float
    variance: float


@dataclass
class VarianceReport:
    start: date
    end: date
    income: VarianceLine
    expenses: VarianceLine
    by_category: List[CategoryVariance]


@dataclass
class CategoryTotal:
    category: str
    total: float
    percentage: float


@dataclass
class PeriodTotals:
    income: float
    expenses: float
    net: float


@dataclass
class PeriodStats:
    income: float
    expenses: float
    net: float
    transaction_count: int
    completed_count: int
    skipped_count: int


@dataclass
class ChartDataPoint:
    label: str
    key: str
    income: float
    expenses: float
    net: float


@dataclass
class ForecastPoint:
    date: date
    balance: float


@dataclass
class ReconciliationReport:
    current_balance: float
    computed_balance: float
    difference: float
    affected_transactions: List[Transaction]
    can_auto_fix: bool = True

    @property
    def has_drift(self) -> bool:
        return abs(self.difference) >= 0.005


@dataclass
class HealthScoreBreakdown:
    score: int
    grade: str
    color: str
    components: Dict[str, int]
    insights: List[str]
    savings_rate: float = 0.0
    runway_days: int = 0
    bill_payment_rate: float = 100.0
    trend: str = "stable"
