"""
Domain Package

CRUD facades and pure calculations over the user's financial data.
Every service is bound to one user and reports through an ActivityLogger
and a ToastSink.
"""

from falusy.domain.admin import (
    AdminService,
    NotificationAudience,
    search_users,
    select_recipients,
)
from falusy.domain.backup import BackupService, build_backup, parse_backup
from falusy.domain.budgets import (
    BudgetAlert,
    BudgetAlertLevel,
    BudgetService,
    BudgetSpending,
    budget_alerts,
    budget_window,
    calculate_spending,
)
from falusy.domain.categories import (
    DEFAULT_CATEGORIES,
    CategoryService,
    CategoryStatistics,
    all_categories,
    category_statistics,
)
from falusy.domain.errors import (
    AdminRequiredError,
    DomainValidationError,
    DuplicateProjectNameError,
    InvalidBackupError,
    InvalidUsernameError,
    ProjectLimitReachedError,
    UsernameTakenError,
)
from falusy.domain.profiles import ProfileService, load_profile, normalize_username
from falusy.domain.projects import ProjectService
from falusy.domain.reports import (
    FinancialSummary,
    MonthlyTotal,
    export_csv,
    monthly_totals,
    project_summary,
    summarize,
)
from falusy.domain.transactions import TransactionService

__all__ = [
    # Services
    "AdminService",
    "BackupService",
    "BudgetService",
    "CategoryService",
    "ProfileService",
    "ProjectService",
    "TransactionService",
    # Calculations
    "DEFAULT_CATEGORIES",
    "BudgetAlert",
    "BudgetAlertLevel",
    "BudgetSpending",
    "CategoryStatistics",
    "FinancialSummary",
    "MonthlyTotal",
    "NotificationAudience",
    "all_categories",
    "budget_alerts",
    "budget_window",
    "build_backup",
    "calculate_spending",
    "category_statistics",
    "export_csv",
    "load_profile",
    "monthly_totals",
    "normalize_username",
    "parse_backup",
    "project_summary",
    "search_users",
    "select_recipients",
    "summarize",
    # Errors
    "AdminRequiredError",
    "DomainValidationError",
    "DuplicateProjectNameError",
    "InvalidBackupError",
    "InvalidUsernameError",
    "ProjectLimitReachedError",
    "UsernameTakenError",
]
