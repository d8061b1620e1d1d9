"""
Main Orchestrator for Pocketbook

This module ties together all the components and defines the
end-to-end flows behind every screen:
1. Expense entry (draft -> validate -> save or refuse)
2. Category and settings management
3. Backup export / import
4. Receipt attachment and smart parse (both best effort)
5. Read-side reports (home summary, charts, history)

DESIGN DECISION: The orchestrator enforces the boundaries:
- No record is created from a draft that failed validation
- Every state change goes through AppState transitions and is then
  committed by the repository, section by section
- Every user action is audited

This is the "glue" that ensures the system works correctly
even when individual components might behave unexpectedly.
"""

from collections import Counter
from datetime import date
from pathlib import Path
from typing import Any, Optional, Union
from uuid import UUID

from pydantic import ValidationError

from pocketbook.agents import SmartParseAgent, resolve_category
from pocketbook.audit import AuditLogger, create_correlation_id
from pocketbook.config import get_settings
from pocketbook.models.audit import AuditEventBuilder
from pocketbook.models.defaults import UNKNOWN_CATEGORY_NAME
from pocketbook.models.expense import (
    Category,
    Expense,
    ExpenseDraft,
    Scope,
    Theme,
    ValidationIssue,
    ValidationResult,
)
from pocketbook.models.report import ChartReport, HistoryDay, MonthSummary, TitheResult
from pocketbook.queries import (
    DEFAULT_CHART_PERIOD,
    ChartPeriod,
    HistoryFilter,
    build_chart_report,
    build_month_summary,
    category_month_counts,
    group_by_day,
    period_options,
    search_history,
    tithe,
)
from pocketbook.services.backup import (
    BackupImportError,
    applied_sections,
    backup_filename,
    dumps_document,
    export_document,
    import_document,
)
from pocketbook.services.image import ImageNormalizer, ReceiptUploadSession
from pocketbook.services.storage import (
    InMemoryStore,
    JsonFileStore,
    KeyValueStoreInterface,
)
from pocketbook.state import (
    AppState,
    MinimumCategoryError,
    StateRepository,
)
from pocketbook.validation import ExpenseValidator, validate_category_input


class PocketbookApp:
    """
    Application service for one user session.

    Holds the current AppState and exposes one method per user action.
    Mutating methods return what the UI needs to show (the saved record,
    the validation outcome) and leave the committed state in `.state`.
    """

    def __init__(
        self,
        repository: StateRepository,
        validator: Optional[ExpenseValidator] = None,
        normalizer: Optional[ImageNormalizer] = None,
        smart_parser: Optional[SmartParseAgent] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._audit_logger = audit_logger or AuditLogger()
        self._repository = repository
        self._validator = validator or ExpenseValidator()
        self._normalizer = normalizer or ImageNormalizer(self._audit_logger)
        self._smart_parser = smart_parser or SmartParseAgent(audit_logger=self._audit_logger)
        self._app_settings = get_settings().app
        self._state = repository.load()

    @property
    def state(self) -> AppState:
        return self._state

    @property
    def smart_parse_available(self) -> bool:
        return self._smart_parser.is_available

    def _commit(self, new_state: AppState, correlation_id: Optional[UUID] = None) -> AppState:
        self._state = self._repository.commit(
            self._state,
            new_state,
            correlation_id=correlation_id,
        )
        return self._state

    # =========================================================================
    # EXPENSES
    # =========================================================================

    def save_expense(
        self,
        draft: ExpenseDraft,
        expense_id: Optional[str] = None,
        today: Optional[date] = None,
    ) -> tuple[Optional[Expense], ValidationResult]:
        """
        Create a new expense, or update `expense_id`, from a form draft.

        The record joins the active scope. A draft with any error-level
        issue is refused and nothing changes.

        Returns:
            (saved_expense_or_None, validation_result)

        Raises:
            ExpenseNotFoundError: If `expense_id` does not exist
        """
        correlation_id = create_correlation_id()
        scope = self._state.current_scope
        result = self._validator.validate(draft, self._state.active_categories, today)

        if not result.is_valid:
            self._audit_logger.log(AuditEventBuilder.expense_save_refused(
                issues=[
                    {"field": i.field, "type": i.issue_type, "message": i.message}
                    for i in result.issues
                ],
                correlation_id=correlation_id,
            ))
            return None, result

        fields = {
            "amount": draft.amount,
            "category_id": draft.category_id,
            "spent_on": draft.spent_on,
            "description": draft.description,
            "scope": scope,
            "receipt_image": draft.receipt_image,
        }

        try:
            if expense_id is None:
                expense = Expense(**fields)
                new_state = self._state.add_expense(expense)
            else:
                new_state = self._state.update_expense(expense_id, **fields)
                expense = new_state.find_expense(expense_id)
        except ValidationError as e:
            issues = [
                ValidationIssue(
                    field=".".join(str(p) for p in err.get("loc", ())) or "expense",
                    issue_type="invalid_value",
                    message=err.get("msg", "Invalid value"),
                    severity="error",
                )
                for err in e.errors()
            ]
            return None, ValidationResult(is_valid=False, issues=result.issues + issues)

        self._commit(new_state, correlation_id)

        if expense_id is None:
            self._audit_logger.log(AuditEventBuilder.expense_saved(
                expense_id=expense.id,
                scope=scope.value,
                amount=str(expense.amount),
                correlation_id=correlation_id,
            ))
        else:
            self._audit_logger.log(AuditEventBuilder.expense_updated(
                expense_id=expense.id,
                changed_fields=sorted(fields),
                correlation_id=correlation_id,
            ))

        return expense, result

    def delete_expense(self, expense_id: str) -> None:
        """
        Raises:
            ExpenseNotFoundError: If no expense has that id
        """
        correlation_id = create_correlation_id()
        self._commit(self._state.delete_expense(expense_id), correlation_id)
        self._audit_logger.log(AuditEventBuilder.expense_deleted(expense_id, correlation_id))

    # =========================================================================
    # CATEGORIES
    # =========================================================================

    def add_category(
        self,
        name: str,
        color: str,
        icon: Optional[str] = None,
    ) -> tuple[Optional[Category], list[ValidationIssue]]:
        """Add a category to the active scope."""
        issues = validate_category_input(name, color)
        if issues:
            return None, issues

        correlation_id = create_correlation_id()
        scope = self._state.current_scope
        category = Category(name=name.strip(), color=color, icon=icon)

        self._commit(self._state.add_category(scope, category), correlation_id)
        self._audit_logger.log(AuditEventBuilder.category_added(
            category_id=category.id,
            scope=scope.value,
            name=category.name,
            correlation_id=correlation_id,
        ))
        return category, []

    def delete_category(self, category_id: str) -> None:
        """
        Remove a category from the active scope.

        Raises:
            MinimumCategoryError: If it is the scope's last category
            CategoryNotFoundError: If the scope has no such category
        """
        correlation_id = create_correlation_id()
        scope = self._state.current_scope

        try:
            new_state = self._state.delete_category(scope, category_id)
        except MinimumCategoryError as e:
            self._audit_logger.log(AuditEventBuilder.category_delete_refused(
                category_id=category_id,
                scope=scope.value,
                reason=str(e),
                correlation_id=correlation_id,
            ))
            raise

        self._commit(new_state, correlation_id)
        self._audit_logger.log(AuditEventBuilder.category_deleted(
            category_id=category_id,
            scope=scope.value,
            correlation_id=correlation_id,
        ))

    # =========================================================================
    # SETTINGS AND NAVIGATION
    # =========================================================================

    def _settings_change(self, new_state: AppState, field: str) -> AppState:
        correlation_id = create_correlation_id()
        self._commit(new_state, correlation_id)
        self._audit_logger.log(AuditEventBuilder.settings_updated([field], correlation_id))
        return self._state

    def set_budget(self, value: float, scope: Optional[Scope] = None) -> AppState:
        """Set the monthly budget of a scope (the active one by default)."""
        scope = scope or self._state.current_scope
        return self._settings_change(
            self._state.set_budget(scope, value),
            f"monthlyBudgets.{scope.value}",
        )

    def set_theme(self, theme: Union[Theme, str]) -> AppState:
        return self._settings_change(self._state.set_theme(Theme(theme)), "theme")

    def toggle_theme(self) -> AppState:
        current = self._state.settings.theme
        return self.set_theme(Theme.DARK if current == Theme.LIGHT else Theme.LIGHT)

    def set_user_name(self, name: str) -> AppState:
        return self._settings_change(self._state.set_user_name(name), "name")

    def set_scope_name(self, scope: Scope, name: str) -> AppState:
        return self._settings_change(
            self._state.set_scope_name(scope, name),
            f"names.{scope.value}",
        )

    def set_auto_sync(self, enabled: bool) -> AppState:
        return self._settings_change(self._state.set_auto_sync(enabled), "autoSync")

    def switch_scope(self, scope: Union[Scope, str]) -> AppState:
        """Change the active scope. Not persisted."""
        self._state = self._state.switch_scope(Scope(scope))
        return self._state

    # =========================================================================
    # BACKUP
    # =========================================================================

    def export_backup(self, today: Optional[date] = None) -> tuple[str, str]:
        """
        Returns:
            (filename, json_text)
        """
        correlation_id = create_correlation_id()
        filename = backup_filename(today)
        text = dumps_document(export_document(self._state))
        self._audit_logger.log(AuditEventBuilder.backup_exported(
            filename=filename,
            expense_count=len(self._state.expenses),
            correlation_id=correlation_id,
        ))
        return filename, text

    def import_backup(self, payload: Union[str, bytes, dict]) -> AppState:
        """
        Restore a backup. All or nothing.

        Raises:
            BackupImportError: If the document is unusable; state unchanged
        """
        correlation_id = create_correlation_id()
        try:
            new_state = import_document(payload, self._state)
            sections = applied_sections(payload)
        except BackupImportError as e:
            reason = "; ".join([str(e)] + e.problems)
            self._audit_logger.log(AuditEventBuilder.backup_import_failed(reason, correlation_id))
            raise

        self._repository.save_all(new_state, correlation_id)
        self._state = new_state
        self._audit_logger.log(AuditEventBuilder.backup_imported(sections, correlation_id))
        return self._state

    # =========================================================================
    # RECEIPTS AND SMART PARSE (best effort)
    # =========================================================================

    def new_upload_session(self) -> ReceiptUploadSession:
        """One session per open expense form."""
        return ReceiptUploadSession(self._normalizer, self._audit_logger)

    async def attach_receipt(
        self,
        draft: ExpenseDraft,
        image_bytes: bytes,
        session: Optional[ReceiptUploadSession] = None,
        source_id: Optional[str] = None,
    ) -> ExpenseDraft:
        """
        Normalize an image and put it on the draft.

        An unreadable or superseded image leaves the draft as it was.
        With a session, re-attaching the same `source_id` reuses the
        earlier result.
        """
        if session is not None:
            image = await session.submit(image_bytes, source_id=source_id)
        else:
            image = await self._normalizer.normalize(image_bytes)
        if image is None:
            return draft
        return draft.model_copy(update={"receipt_image": image.data_url})

    async def smart_parse(
        self,
        text: str,
        today: Optional[date] = None,
    ) -> Optional[ExpenseDraft]:
        """
        Pre-fill a draft from a sentence. None when nothing could be parsed.
        """
        today = today or date.today()
        categories = self._state.active_categories
        result = await self._smart_parser.parse(text, categories, today)
        if result is None:
            return None
        matched = resolve_category(result.category_name, categories)
        return result.to_draft(
            category_id=matched.id if matched else None,
            fallback_date=today,
        )

    # =========================================================================
    # REPORTS
    # =========================================================================

    def month_summary(self, today: Optional[date] = None) -> MonthSummary:
        return build_month_summary(
            self._state.scope_expenses,
            self._state.active_budget,
            today=today,
            recent_limit=self._app_settings.recent_expenses_limit,
            warning_percentage=self._app_settings.budget_warning_percentage,
        )

    def chart_report(
        self,
        period: ChartPeriod = DEFAULT_CHART_PERIOD,
        selected_category_ids: Optional[list[str]] = None,
        today: Optional[date] = None,
    ) -> ChartReport:
        return build_chart_report(
            self._state.scope_expenses,
            self._state.active_categories,
            period,
            selected_category_ids,
            today,
        )

    def chart_periods(self) -> list[ChartPeriod]:
        return period_options(self._state.scope_expenses)

    def history(
        self,
        term: str = "",
        window: HistoryFilter = HistoryFilter.ALL,
        today: Optional[date] = None,
    ) -> list[HistoryDay]:
        found = search_history(
            self._state.scope_expenses,
            self._state.active_categories,
            term,
            window,
            today,
        )
        return group_by_day(found)

    def repeat_counts(self) -> Counter:
        """{(YYYY-MM, category_id): n} over the whole active scope."""
        return category_month_counts(self._state.scope_expenses)

    def category_choices(self, current_id: Optional[str] = None) -> dict[str, str]:
        """
        {category_id: name} for the expense form's category picker.

        An id the active scope no longer has (its category was deleted)
        comes first, named "Unknown", so an edit keeps it unless the user
        picks another category.
        """
        choices = {c.id: c.name for c in self._state.active_categories}
        if current_id and current_id not in choices:
            choices = {current_id: UNKNOWN_CATEGORY_NAME, **choices}
        return choices

    @staticmethod
    def tithe(income: Any, expense: Any) -> TitheResult:
        return tithe(income, expense)


def create_app_components(
    data_dir: Optional[Union[str, Path]] = None,
    in_memory: bool = False,
    store: Optional[KeyValueStoreInterface] = None,
) -> PocketbookApp:
    """
    Factory function to create the application service.

    Args:
        data_dir: Where JSON files live (defaults to the configured one)
        in_memory: Use a throwaway in-memory store (tests, demos)
        store: An explicit store, overriding both of the above

    Returns:
        A loaded PocketbookApp
    """
    audit_logger = AuditLogger()

    if store is None:
        if in_memory:
            store = InMemoryStore()
        else:
            store = JsonFileStore(Path(data_dir).expanduser() if data_dir else None)

    repository = StateRepository(store, audit_logger)
    return PocketbookApp(repository, audit_logger=audit_logger)
