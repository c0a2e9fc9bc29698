"""
Core Data Models for Falusy

These models define the schemas for everything the tracker reads from and
writes to the remote document service and the local mirror.

DESIGN DECISION: Read records and write payloads are separate models.
- Read records (Expense, Project, ...) are lenient: a half-written or
  legacy document must never break a whole snapshot.
- Input models (ExpenseInput, ProjectInput, ...) are strict: they are the
  synchronous validation step that runs before any remote write.

Wire and mirror field names are camelCase (userId, createdAt, ...).
Python attributes are snake_case; both spellings are accepted on input.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)
from pydantic.alias_generators import to_camel


def utc_now() -> dt.datetime:
    """Timezone-aware current time."""
    return dt.datetime.now(dt.timezone.utc)


def now_millis() -> int:
    """Current time as epoch milliseconds."""
    return int(utc_now().timestamp() * 1000)


def to_epoch_millis(value: Any) -> Optional[int]:
    """
    Normalize a remote timestamp to epoch milliseconds.

    Accepts what the backends hand back: native datetimes, dates,
    ISO-8601 strings, and numbers that are already epoch millis.
    Naive datetimes are taken as UTC.
    """
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValueError(f"Unsupported timestamp value: {value!r}")
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, dt.datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=dt.timezone.utc)
        return int(value.timestamp() * 1000)
    if isinstance(value, dt.date):
        midnight = dt.datetime(value.year, value.month, value.day, tzinfo=dt.timezone.utc)
        return int(midnight.timestamp() * 1000)
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(float(text))
        except ValueError:
            pass
        return to_epoch_millis(dt.datetime.fromisoformat(text.replace("Z", "+00:00")))
    raise ValueError(f"Unsupported timestamp value: {value!r}")


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class PaymentMethod(str, Enum):
    """How a transaction was paid or received."""
    CASH = "cash"
    CREDIT_CARD = "credit_card"
    BANK_TRANSFER = "bank_transfer"
    E_WALLET = "e_wallet"


class ExpenseType(str, Enum):
    """Expense recurrence flavour (expenses only)."""
    FIXED = "fixed"
    VARIABLE = "variable"


class TransactionKind(str, Enum):
    """The two transaction collections."""
    EXPENSE = "expense"
    REVENUE = "revenue"


class NotificationType(str, Enum):
    """Visual severity of a notification."""
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class SiteStatus(str, Enum):
    """
    Admin-controlled site status.

    Anything other than NORMAL locks out non-admin users.
    """
    NORMAL = "normal"
    MAINTENANCE = "maintenance"
    DEVELOPMENT = "development"


class BudgetPeriod(str, Enum):
    """Budget window length."""
    MONTHLY = "monthly"
    YEARLY = "yearly"


# =============================================================================
# BASE MODEL
# =============================================================================

class RecordModel(BaseModel):
    """Base for every wire-facing model: camelCase aliases, stripped strings."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="ignore",
    )

    def to_document(self) -> dict[str, Any]:
        """Serialize to the camelCase JSON shape used by remote and mirror."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class TimestampedRecord(RecordModel):
    """A record whose created_at is normalized to epoch millis on read."""

    id: str
    user_id: str
    created_at: Optional[int] = None

    @field_validator("created_at", mode="before")
    @classmethod
    def normalize_created_at(cls, v: Any) -> Optional[int]:
        return to_epoch_millis(v)


# =============================================================================
# TRANSACTIONS
# =============================================================================

class TransactionRecord(TimestampedRecord):
    """
    A transaction as read back from the remote service.

    Fields are optional because old documents may lack them;
    creation rules live in TransactionInput.
    """

    amount: Decimal = Decimal("0")
    category: str = ""
    description: Optional[str] = None
    date: Optional[dt.date] = None
    payment_method: str = PaymentMethod.CASH.value
    project_id: Optional[str] = None

    @field_validator("date", mode="before")
    @classmethod
    def parse_date(cls, v: Any) -> Any:
        """Accept full timestamps and empty strings for the business date."""
        if v == "":
            return None
        if isinstance(v, dt.datetime):
            return v.date()
        if isinstance(v, str) and "T" in v:
            return dt.datetime.fromisoformat(v.replace("Z", "+00:00")).date()
        return v


class Expense(TransactionRecord):
    """An expense record."""

    type: Optional[str] = None


class Revenue(TransactionRecord):
    """A revenue record."""


class TransactionInput(RecordModel):
    """
    Creation payload for a transaction.

    CRITICAL: amount must be positive; category and date are required.
    """

    amount: Decimal = Field(
        ...,
        gt=0,
        description="Transaction amount (strictly positive)"
    )
    category: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Category name (built-in or custom)"
    )
    description: Optional[str] = Field(
        default=None,
        max_length=500,
    )
    date: dt.date = Field(
        ...,
        description="Business date of the transaction"
    )
    payment_method: PaymentMethod = PaymentMethod.CASH
    project_id: Optional[str] = None


class ExpenseInput(TransactionInput):
    """Creation payload for an expense."""

    type: ExpenseType = ExpenseType.FIXED


class RevenueInput(TransactionInput):
    """Creation payload for a revenue."""


class TransactionUpdate(RecordModel):
    """
    Partial update for a transaction.

    Only fields that were explicitly supplied are written. Supplied fields
    obey the creation rules, so amount/category/date cannot be cleared.
    """

    amount: Optional[Decimal] = Field(default=None, gt=0)
    category: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    date: Optional[dt.date] = None
    payment_method: Optional[PaymentMethod] = None
    project_id: Optional[str] = None
    type: Optional[ExpenseType] = None

    @field_validator("amount", "category", "date")
    @classmethod
    def required_fields_cannot_be_cleared(cls, v: Any) -> Any:
        if v is None:
            raise ValueError("field cannot be cleared")
        return v

    def to_changes(self) -> dict[str, Any]:
        """The camelCase partial document to send to the remote service."""
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


# =============================================================================
# PROJECTS
# =============================================================================

class Project(TimestampedRecord):
    """A project grouping transactions."""

    name: str = ""


class ProjectInput(RecordModel):
    """Creation/rename payload for a project."""

    name: str = Field(..., min_length=1, max_length=100)


# =============================================================================
# CATEGORIES
# =============================================================================

HEX_COLOR_PATTERN = r"^#(?:[0-9a-fA-F]{3}){1,2}$"


class CategoryDefinition(RecordModel):
    """A category as displayed: built-in, custom, or built-in overridden."""

    name: str
    icon: str
    color: str
    is_default: bool = False
    id: Optional[str] = None


class CustomCategory(TimestampedRecord):
    """A user-defined category."""

    name: str = ""
    icon: str = ""
    color: str = ""


class CategoryInput(RecordModel):
    """Creation payload for a custom category."""

    name: str = Field(..., min_length=1, max_length=50)
    icon: str = Field(..., min_length=1, max_length=16)
    color: str = Field(..., pattern=HEX_COLOR_PATTERN)


class CategoryUpdate(RecordModel):
    """Partial update for a custom category."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    icon: Optional[str] = Field(default=None, min_length=1, max_length=16)
    color: Optional[str] = Field(default=None, pattern=HEX_COLOR_PATTERN)

    def to_changes(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True, exclude_none=True)


# =============================================================================
# NOTIFICATIONS
# =============================================================================

class Notification(TimestampedRecord):
    """
    A notification pushed to one user.

    Title and message are per-language maps, e.g. {"ar": "...", "en": "..."}.
    """

    title: dict[str, str] = Field(default_factory=dict)
    message: dict[str, str] = Field(default_factory=dict)
    type: NotificationType = NotificationType.INFO
    icon: str = "Bell"
    read: bool = False
    urgent: bool = False
    expires_at: Optional[int] = None

    @field_validator("expires_at", mode="before")
    @classmethod
    def normalize_expires_at(cls, v: Any) -> Optional[int]:
        return to_epoch_millis(v)

    def is_expired(self, now_ms: Optional[int] = None) -> bool:
        if self.expires_at is None:
            return False
        return self.expires_at < (now_ms if now_ms is not None else now_millis())

    def localized_title(self, language: str) -> str:
        return _localized(self.title, language)

    def localized_message(self, language: str) -> str:
        return _localized(self.message, language)


class NotificationInput(RecordModel):
    """
    Payload an admin submits to notify users.

    Title and message need at least one non-empty language; blank
    languages are dropped. One notification document is written per
    recipient.
    """

    title: dict[str, str]
    message: dict[str, str]
    user_ids: list[str] = Field(..., min_length=1)
    type: NotificationType = NotificationType.INFO
    icon: str = Field(default="Bell", min_length=1)
    urgent: bool = False
    expires_at: Optional[dt.datetime] = None

    @field_validator("title", "message")
    @classmethod
    def at_least_one_language(cls, v: dict[str, str]) -> dict[str, str]:
        texts = {lang: text.strip() for lang, text in v.items() if text and text.strip()}
        if not texts:
            raise ValueError("at least one language is required")
        return texts

    @field_validator("user_ids")
    @classmethod
    def unique_recipients(cls, v: list[str]) -> list[str]:
        recipients = list(dict.fromkeys(uid.strip() for uid in v if uid and uid.strip()))
        if not recipients:
            raise ValueError("at least one recipient is required")
        return recipients


def _localized(texts: dict[str, str], language: str) -> str:
    if language in texts:
        return texts[language]
    return next(iter(texts.values()), "")


# =============================================================================
# USERS
# =============================================================================

class UserProfile(RecordModel):
    """
    Profile document of one user.

    is_admin / is_active are tri-state: absent means "not set", which counts
    as not-admin and active.
    """

    user_id: str
    username: str = ""
    email: str = ""
    display_name: Optional[str] = None
    is_admin: Optional[bool] = None
    is_active: Optional[bool] = None
    project_limit: Optional[int] = Field(default=None, ge=0)
    created_at: Optional[int] = None

    @field_validator("created_at", mode="before")
    @classmethod
    def normalize_created_at(cls, v: Any) -> Optional[int]:
        return to_epoch_millis(v)

    @property
    def admin(self) -> bool:
        return self.is_admin is True

    @property
    def disabled(self) -> bool:
        return self.is_active is False


class UserUpdate(RecordModel):
    """Fields an admin may edit on another user's profile."""

    display_name: str = Field(..., max_length=100)


# =============================================================================
# BUDGETS
# =============================================================================

class Budget(TimestampedRecord):
    """A spending budget over a date window."""

    name: str = ""
    amount: Decimal = Decimal("0")
    category: Optional[str] = None
    period: BudgetPeriod = BudgetPeriod.MONTHLY
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None
    enable_alerts: bool = False
    alert_threshold: float = 80.0


class BudgetInput(RecordModel):
    """Creation payload for a budget."""

    name: str = Field(..., min_length=1, max_length=100)
    amount: Decimal = Field(..., gt=0)
    category: Optional[str] = Field(default=None, max_length=100)
    period: BudgetPeriod = BudgetPeriod.MONTHLY
    enable_alerts: bool = False
    alert_threshold: float = Field(default=80.0, gt=0, le=100)
