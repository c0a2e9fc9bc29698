"""
Message catalogue for the two supported locales.

Toasts and exports look messages up by key; unknown keys fall back to the
key itself so a missing translation never breaks a user action.
"""

SUPPORTED_LANGUAGES = ("ar", "en")
DEFAULT_LANGUAGE = "ar"

MESSAGES: dict[str, dict[str, str]] = {
    "ar": {
        "expense_added": "تم إضافة المصروف بنجاح",
        "expense_add_failed": "فشل في إضافة المصروف",
        "expense_updated": "تم تحديث المصروف بنجاح",
        "expense_update_failed": "فشل في تحديث المصروف",
        "expense_deleted": "تم حذف المصروف بنجاح",
        "expense_delete_failed": "فشل في حذف المصروف",
        "revenue_added": "تم إضافة الإيراد بنجاح",
        "revenue_add_failed": "فشل في إضافة الإيراد",
        "revenue_updated": "تم تحديث الإيراد بنجاح",
        "revenue_update_failed": "فشل في تحديث الإيراد",
        "revenue_deleted": "تم حذف الإيراد بنجاح",
        "revenue_delete_failed": "فشل في حذف الإيراد",
        "project_added": "تم إنشاء المشروع بنجاح",
        "project_add_failed": "فشل في إنشاء المشروع",
        "project_updated": "تم تحديث المشروع بنجاح",
        "project_update_failed": "فشل في تحديث المشروع",
        "project_deleted": "تم حذف المشروع بنجاح",
        "project_delete_failed": "فشل في حذف المشروع",
        "project_name_required": "اسم المشروع مطلوب",
        "project_name_taken": "اسم المشروع موجود مسبقاً. يرجى اختيار اسم آخر",
        "project_limit_reached": "لقد وصلت إلى الحد الأقصى لعدد المشاريع",
        "category_added": "تم إضافة الفئة بنجاح",
        "category_add_failed": "فشل في إضافة الفئة",
        "category_updated": "تم تحديث الفئة بنجاح",
        "category_update_failed": "فشل في تحديث الفئة",
        "category_deleted": "تم حذف الفئة بنجاح",
        "category_delete_failed": "فشل في حذف الفئة",
        "budget_added": "تم إضافة الميزانية بنجاح",
        "budget_add_failed": "فشل في إضافة الميزانية",
        "budget_updated": "تم تحديث الميزانية بنجاح",
        "budget_update_failed": "فشل في تحديث الميزانية",
        "budget_deleted": "تم حذف الميزانية بنجاح",
        "budget_delete_failed": "فشل في حذف الميزانية",
        "budget_warning": "تحذير: تم استهلاك {percentage}% من ميزانية {name}",
        "budget_exceeded": "تم تجاوز ميزانية {name}!",
        "backup_exported": "تم تصدير البيانات بنجاح",
        "backup_export_failed": "فشل في تصدير البيانات",
        "backup_imported": "تم استيراد البيانات بنجاح",
        "backup_import_failed": "فشل في استيراد البيانات",
        "backup_created": "تم إنشاء النسخة الاحتياطية بنجاح",
        "backup_create_failed": "فشل في إنشاء النسخة الاحتياطية",
        "validation_failed": "يرجى التحقق من الحقول المطلوبة",
        "offline_cache_used": "يتم عرض البيانات المحفوظة محلياً",
        "load_failed": "حدث خطأ في تحميل البيانات",
        "notifications_marked_read": "تم تحديد جميع الإشعارات كمقروءة",
        "notification_deleted": "تم حذف الإشعار",
        "notification_action_failed": "حدث خطأ",
        "profile_registered": "تم إنشاء الحساب بنجاح",
        "profile_save_failed": "فشل في حفظ الملف الشخصي",
        "admin_required": "هذه العملية متاحة للمشرفين فقط",
        "users_load_failed": "حدث خطأ في جلب المستخدمين",
        "user_status_updated": "تم تحديث حالة الحساب",
        "user_updated": "تم تحديث الحساب بنجاح",
        "user_update_failed": "حدث خطأ في التحديث",
        "user_deleted": "تم حذف الحساب بنجاح",
        "user_delete_failed": "فشل في حذف الحساب",
        "notification_title_required": "يرجى إدخال عنوان الإشعار",
        "notification_message_required": "يرجى إدخال نص الإشعار",
        "notification_recipients_required": "يرجى اختيار مستخدم واحد على الأقل",
        "notification_sent": "تم إرسال الإشعار بنجاح",
        "notification_send_failed": "حدث خطأ في إرسال الإشعار",
        "activity_load_failed": "حدث خطأ في تحميل سجل النشاطات",
        "csv_date": "التاريخ",
        "csv_type": "النوع",
        "csv_category": "الفئة",
        "csv_description": "الوصف",
        "csv_amount": "المبلغ",
        "csv_payment_method": "طريقة الدفع",
        "csv_expense": "مصروف",
        "csv_revenue": "إيراد",
    },
    "en": {
        "expense_added": "Expense added successfully",
        "expense_add_failed": "Failed to add expense",
        "expense_updated": "Expense updated successfully",
        "expense_update_failed": "Failed to update expense",
        "expense_deleted": "Expense deleted successfully",
        "expense_delete_failed": "Failed to delete expense",
        "revenue_added": "Revenue added successfully",
        "revenue_add_failed": "Failed to add revenue",
        "revenue_updated": "Revenue updated successfully",
        "revenue_update_failed": "Failed to update revenue",
        "revenue_deleted": "Revenue deleted successfully",
        "revenue_delete_failed": "Failed to delete revenue",
        "project_added": "Project created successfully",
        "project_add_failed": "Failed to create project",
        "project_updated": "Project updated successfully",
        "project_update_failed": "Failed to update project",
        "project_deleted": "Project deleted successfully",
        "project_delete_failed": "Failed to delete project",
        "project_name_required": "Project name is required",
        "project_name_taken": "A project with this name already exists. Please choose another name",
        "project_limit_reached": "You have reached your project limit",
        "category_added": "Category added successfully",
        "category_add_failed": "Failed to add category",
        "category_updated": "Category updated successfully",
        "category_update_failed": "Failed to update category",
        "category_deleted": "Category deleted successfully",
        "category_delete_failed": "Failed to delete category",
        "budget_added": "Budget added successfully",
        "budget_add_failed": "Failed to add budget",
        "budget_updated": "Budget updated successfully",
        "budget_update_failed": "Failed to update budget",
        "budget_deleted": "Budget deleted successfully",
        "budget_delete_failed": "Failed to delete budget",
        "budget_warning": "Warning: {percentage}% of the {name} budget has been used",
        "budget_exceeded": "The {name} budget has been exceeded!",
        "backup_exported": "Data exported successfully",
        "backup_export_failed": "Failed to export data",
        "backup_imported": "Data imported successfully",
        "backup_import_failed": "Failed to import data",
        "backup_created": "Backup created successfully",
        "backup_create_failed": "Failed to create backup",
        "validation_failed": "Please check the required fields",
        "offline_cache_used": "Showing data saved on this device",
        "load_failed": "Failed to load data",
        "notifications_marked_read": "All notifications marked as read",
        "notification_deleted": "Notification deleted",
        "notification_action_failed": "Something went wrong",
        "profile_registered": "Account created successfully",
        "profile_save_failed": "Failed to save profile",
        "admin_required": "Only administrators can do this",
        "users_load_failed": "Failed to load users",
        "user_status_updated": "Account status updated",
        "user_updated": "Account updated successfully",
        "user_update_failed": "Failed to update account",
        "user_deleted": "Account deleted successfully",
        "user_delete_failed": "Failed to delete account",
        "notification_title_required": "Please enter a notification title",
        "notification_message_required": "Please enter a notification message",
        "notification_recipients_required": "Please select at least one user",
        "notification_sent": "Notification sent successfully",
        "notification_send_failed": "Failed to send notification",
        "activity_load_failed": "Failed to load the activity log",
        "csv_date": "Date",
        "csv_type": "Type",
        "csv_category": "Category",
        "csv_description": "Description",
        "csv_amount": "Amount",
        "csv_payment_method": "Payment method",
        "csv_expense": "Expense",
        "csv_revenue": "Revenue",
    },
}


def translate(key: str, language: str = DEFAULT_LANGUAGE, **params) -> str:
    """Look up a message, falling back to the default language, then the key."""
    catalogue = MESSAGES.get(language, MESSAGES[DEFAULT_LANGUAGE])
    text = catalogue.get(key) or MESSAGES[DEFAULT_LANGUAGE].get(key) or key
    return text.format(**params) if params else text
