"""End-to-end tests for the application service."""

import asyncio
import json
from datetime import date
from decimal import Decimal
from io import BytesIO
from types import SimpleNamespace

import pytest
from PIL import Image

from pocketbook.agents import SmartParseAgent
from pocketbook.models import ExpenseDraft, Scope, Theme
from pocketbook.models.report import BudgetLevel
from pocketbook.orchestrator import PocketbookApp, create_app_components
from pocketbook.queries import HistoryFilter
from pocketbook.services.backup import BackupImportError
from pocketbook.services.storage import EXPENSES_KEY, SETTINGS_KEY, InMemoryStore, JsonFileStore
from pocketbook.state import MinimumCategoryError, StateRepository


def draft(amount="25.00", category_id="1", description="Almoço", spent_on=date(2024, 5, 15), **extra):
    return ExpenseDraft(
        amount=amount,
        category_id=category_id,
        description=description,
        spent_on=spent_on,
        **extra,
    )


@pytest.fixture
def app() -> PocketbookApp:
    return create_app_components(in_memory=True)


class TestExpenseFlow:
    """Tests for saving, editing and deleting expenses."""

    def test_save_new_expense(self, app, today):
        expense, result = app.save_expense(draft(amount="12,50"), today=today)
        assert result.is_valid
        assert expense.amount == Decimal("12.50")
        assert expense.scope == Scope.PERSONAL
        assert app.state.expenses == [expense]

    def test_invalid_draft_is_refused(self, app, today):
        expense, result = app.save_expense(draft(amount="0", description=""), today=today)
        assert expense is None
        assert not result.is_valid
        assert {i.field for i in result.issues if i.severity == "error"} == {"amount", "description"}
        assert app.state.expenses == []

    def test_warnings_do_not_block(self, app, today):
        expense, result = app.save_expense(
            draft(category_id="gone", spent_on=date(2024, 6, 1)), today=today
        )
        assert expense is not None
        assert len(result.warnings) == 2

    def test_expense_joins_active_scope(self, app, today):
        app.switch_scope(Scope.BUSINESS)
        expense, _ = app.save_expense(draft(category_id="mv_3"), today=today)
        assert expense.scope == Scope.BUSINESS
        app.switch_scope(Scope.PERSONAL)
        assert app.state.scope_expenses == []

    def test_update_expense(self, app, today):
        saved, _ = app.save_expense(draft(), today=today)
        updated, result = app.save_expense(
            draft(amount="30", description="Jantar"), expense_id=saved.id, today=today
        )
        assert result.is_valid
        assert updated.id == saved.id
        assert updated.created_at == saved.created_at
        assert updated.amount == Decimal("30.00")
        assert len(app.state.expenses) == 1

    def test_delete_expense(self, app, today):
        saved, _ = app.save_expense(draft(), today=today)
        app.delete_expense(saved.id)
        assert app.state.expenses == []

    def test_saves_are_persisted(self, tmp_path, today):
        app = create_app_components(data_dir=tmp_path)
        app.save_expense(draft(), today=today)
        reloaded = create_app_components(data_dir=tmp_path)
        assert reloaded.state.expenses == app.state.expenses
        assert JsonFileStore(tmp_path).get(EXPENSES_KEY)[0]["description"] == "Almoço"


class TestCategoryAndSettingsFlow:
    """Tests for categories and user settings."""

    def test_add_category_to_active_scope(self, app):
        app.switch_scope(Scope.BUSINESS)
        category, issues = app.add_category("Aluguel", "#111827", "home")
        assert issues == []
        assert app.state.find_category(Scope.BUSINESS, category.id) == category
        assert app.state.find_category(Scope.PERSONAL, category.id) is None

    def test_add_category_rejects_bad_input(self, app):
        category, issues = app.add_category("", "azul")
        assert category is None
        assert {i.field for i in issues} == {"name", "color"}

    def test_cannot_delete_last_category(self):
        app = create_app_components(store=InMemoryStore({
            "categories_business": [{"id": "only", "name": "Única", "color": "#000000"}],
        }))
        app.switch_scope(Scope.BUSINESS)
        with pytest.raises(MinimumCategoryError):
            app.delete_category("only")
        assert [c.id for c in app.state.active_categories] == ["only"]

    def test_delete_category(self, app):
        app.delete_category("19")
        assert app.state.find_category(Scope.PERSONAL, "19") is None

    def test_category_choices_keep_deleted_category(self, app, today):
        saved, _ = app.save_expense(draft(category_id="19"), today=today)
        app.delete_category("19")

        choices = app.category_choices(saved.category_id)
        assert list(choices)[0] == "19"
        assert choices["19"] == "Unknown"
        assert "19" not in app.category_choices()

        updated, _ = app.save_expense(
            draft(category_id=list(choices)[0], description="Editada"), expense_id=saved.id, today=today
        )
        assert updated.category_id == "19"

    def test_settings_changes(self, app):
        app.set_budget(800)
        app.set_budget(2500, scope=Scope.BUSINESS)
        app.toggle_theme()
        app.set_user_name("Ana")
        app.set_scope_name(Scope.BUSINESS, "Oficina")
        app.set_auto_sync(False)

        settings = app.state.settings
        assert settings.budget_for(Scope.PERSONAL) == 800
        assert settings.budget_for(Scope.BUSINESS) == 2500
        assert settings.theme == Theme.DARK
        assert settings.name == "Ana"
        assert settings.scope_label(Scope.BUSINESS) == "Oficina"
        assert settings.auto_sync is False

    def test_settings_are_persisted(self):
        store = InMemoryStore()
        app = create_app_components(store=store)
        app.set_budget(300)
        assert store.get(SETTINGS_KEY)["monthlyBudgets"]["personal"] == 300

    def test_saving_stamps_last_sync(self, app, today):
        assert app.state.settings.last_synced_at is None
        app.save_expense(draft(), today=today)
        assert app.state.settings.last_synced_at is not None


class TestBackupFlow:
    """Tests for exporting and restoring backups."""

    def test_export_then_import(self, app, today):
        app.save_expense(draft(), today=today)
        app.set_budget(900)
        filename, text = app.export_backup(today)
        assert filename == "financas_backup_2024-05-15.json"

        other = create_app_components(in_memory=True)
        other.import_backup(text)
        assert other.state.expenses == app.state.expenses
        assert other.state.settings.budget_for(Scope.PERSONAL) == 900

    def test_bad_import_leaves_state_unchanged(self, app, today):
        app.save_expense(draft(), today=today)
        before = app.state
        with pytest.raises(BackupImportError):
            app.import_backup(json.dumps({"expenses": [{"amount": "x"}], "userSettings": {"name": "Z"}}))
        assert app.state == before

    def test_import_is_persisted(self):
        store = InMemoryStore()
        app = create_app_components(store=store)
        app.import_backup({"userSettings": {"name": "Restaurada"}})
        assert store.get(SETTINGS_KEY)["name"] == "Restaurada"


class TestReports:
    """Tests for the read-side screens."""

    def test_month_summary(self, app, today):
        app.set_budget(200)
        app.save_expense(draft(amount="100", spent_on=date(2024, 5, 2)), today=today)
        app.save_expense(draft(amount="50", spent_on=date(2024, 4, 20)), today=today)

        summary = app.month_summary(today)
        assert summary.month_total == Decimal("100.00")
        assert summary.previous_month_total == Decimal("50.00")
        assert summary.budget.percentage == 50
        assert summary.budget.remaining == 100
        assert summary.budget.level == BudgetLevel.OK
        assert len(summary.recent) == 2

    def test_chart_report(self, app, today):
        app.save_expense(draft(amount="10", category_id="1", spent_on=date(2024, 5, 10)), today=today)
        app.save_expense(draft(amount="30", category_id="4", spent_on=date(2024, 5, 12)), today=today)

        report = app.chart_report(today=today)
        assert report.total == Decimal("40.00")
        assert [c.category_id for c in report.categories] == ["4", "1"]

        filtered = app.chart_report(selected_category_ids=["1"], today=today)
        assert filtered.total == Decimal("10.00")

    def test_history(self, app, today):
        app.save_expense(draft(description="Pizza", spent_on=date(2024, 5, 14)), today=today)
        app.save_expense(draft(description="Feira", category_id="4", spent_on=date(2023, 1, 1)), today=today)

        days = app.history("pizza", today=today)
        assert [d.day for d in days] == [date(2024, 5, 14)]
        assert len(app.history(window=HistoryFilter.YEAR, today=today)) == 1
        assert len(app.history("mercado", today=today)) == 1

    def test_repeat_counts_follow_active_scope(self, app, today):
        app.save_expense(draft(spent_on=date(2024, 5, 1)), today=today)
        app.save_expense(draft(spent_on=date(2024, 5, 9)), today=today)
        app.switch_scope(Scope.BUSINESS)
        app.save_expense(draft(category_id="mv_1"), today=today)

        assert app.repeat_counts() == {("2024-05", "mv_1"): 1}
        app.switch_scope(Scope.PERSONAL)
        assert app.repeat_counts()[("2024-05", "1")] == 2

    def test_tithe(self):
        result = PocketbookApp.tithe("1000", "400")
        assert result.tithe == Decimal("60.00")


class FakeModel:
    def __init__(self, text):
        self.text = text

    async def generate_content_async(self, prompt):
        return SimpleNamespace(text=self.text)


class TestBestEffortFeatures:
    """Tests for smart parse and receipt attachment."""

    def test_smart_parse_fills_a_draft(self, today):
        model = FakeModel(json.dumps({"amount": 32.5, "categoryName": "mercado", "description": "Feira"}))
        app = PocketbookApp(
            StateRepository(InMemoryStore()),
            smart_parser=SmartParseAgent(model=model),
        )
        parsed = asyncio.run(app.smart_parse("feira 32,50", today))
        assert parsed.amount == "32.50"
        assert parsed.category_id == "4"
        assert parsed.spent_on == today
        assert app.state.expenses == []

    def test_smart_parse_unavailable(self, app, today):
        assert app.smart_parse_available is False
        assert asyncio.run(app.smart_parse("feira 32,50", today)) is None

    def test_attach_receipt(self, app, today):
        buffer = BytesIO()
        Image.new("RGB", (1600, 1200), "white").save(buffer, format="JPEG")

        with_image = asyncio.run(app.attach_receipt(draft(), buffer.getvalue()))
        assert with_image.receipt_image.startswith("data:image/jpeg;base64,")

        expense, _ = app.save_expense(with_image, today=today)
        assert expense.receipt_image == with_image.receipt_image

    def test_unreadable_receipt_keeps_draft(self, app):
        original = draft()
        assert asyncio.run(app.attach_receipt(original, b"nope")) == original

    def test_attach_receipt_with_session(self, app):
        buffer = BytesIO()
        Image.new("RGB", (100, 100), "white").save(buffer, format="PNG")
        session = app.new_upload_session()
        with_image = asyncio.run(app.attach_receipt(draft(), buffer.getvalue(), session))
        assert session.latest.data_url == with_image.receipt_image

    def test_reattaching_same_upload_reuses_image(self, app):
        buffer = BytesIO()
        Image.new("RGB", (100, 100), "white").save(buffer, format="PNG")
        session = app.new_upload_session()

        first = asyncio.run(app.attach_receipt(draft(), buffer.getvalue(), session, source_id="up-1"))
        token = session.current_token
        again = asyncio.run(app.attach_receipt(draft(), buffer.getvalue(), session, source_id="up-1"))
        assert again.receipt_image == first.receipt_image
        assert session.current_token == token


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
