"""
Data Models Package

This package contains all Pydantic models used by Falusy.
Everything read from or written to the remote service and the local
mirror conforms to these schemas.
"""

from falusy.models.records import (
    Budget,
    BudgetInput,
    BudgetPeriod,
    CategoryDefinition,
    CategoryInput,
    CategoryUpdate,
    CustomCategory,
    Expense,
    ExpenseInput,
    ExpenseType,
    Notification,
    NotificationType,
    PaymentMethod,
    Project,
    ProjectInput,
    RecordModel,
    Revenue,
    RevenueInput,
    SiteStatus,
    TransactionInput,
    TransactionKind,
    TransactionRecord,
    TransactionUpdate,
    UserProfile,
    UserUpdate,
    NotificationInput,
    now_millis,
    to_epoch_millis,
    utc_now,
)
from falusy.models.activity import (
    ActivityAction,
    ActivityLog,
    ActivityLogBuilder,
    EntityType,
)
from falusy.models.backup import BACKUP_FORMAT_VERSION, BackupDocument

__all__ = [
    # Records
    "Budget",
    "BudgetInput",
    "BudgetPeriod",
    "CategoryDefinition",
    "CategoryInput",
    "CategoryUpdate",
    "CustomCategory",
    "Expense",
    "ExpenseInput",
    "ExpenseType",
    "Notification",
    "NotificationType",
    "PaymentMethod",
    "Project",
    "ProjectInput",
    "RecordModel",
    "Revenue",
    "RevenueInput",
    "SiteStatus",
    "TransactionInput",
    "TransactionKind",
    "TransactionRecord",
    "TransactionUpdate",
    "UserProfile",
    "UserUpdate",
    "NotificationInput",
    "now_millis",
    "to_epoch_millis",
    "utc_now",
    # Activity models
    "ActivityAction",
    "ActivityLog",
    "ActivityLogBuilder",
    "EntityType",
    # Backup
    "BACKUP_FORMAT_VERSION",
    "BackupDocument",
]
