"""Tests for backup export and import."""

import json

import pytest
from datetime import date

from pocketbook.models import Category, Scope
from pocketbook.services.backup import (
    BackupImportError,
    applied_sections,
    backup_filename,
    dumps_document,
    export_document,
    import_document,
)
from pocketbook.state import AppState

from conftest import make_expense


@pytest.fixture
def state(today) -> AppState:
    return (
        AppState()
        .add_expense(make_expense("10.50", today, "1", description="Café"))
        .add_expense(make_expense(200, today, "mv_3", description="Frete", scope=Scope.BUSINESS,
                                  receipt_image="data:image/jpeg;base64,AAAA"))
        .add_category(Scope.PERSONAL, Category(id="pets", name="Pets", color="#84CC16", icon="heart"))
        .set_budget(Scope.PERSONAL, 1200)
        .set_scope_name(Scope.BUSINESS, "Oficina")
        .mark_synced(1700000000000)
    )


class TestExport:
    """Tests for the export side."""

    def test_document_keys(self, state):
        document = export_document(state)
        assert set(document) == {"expenses", "categories_personal", "categories_business", "userSettings"}
        assert document["expenses"][0]["description"] == "Frete"
        assert document["expenses"][0]["receiptImage"].startswith("data:image/jpeg")
        assert document["userSettings"]["monthlyBudgets"]["personal"] == 1200

    def test_pretty_printed(self, state):
        text = dumps_document(export_document(state))
        assert text.startswith('{\n  "expenses"')
        assert "Café" in text

    def test_filename(self):
        assert backup_filename(date(2024, 5, 31)) == "financas_backup_2024-05-31.json"


class TestImport:
    """Tests for the import side."""

    def test_round_trip(self, state):
        text = dumps_document(export_document(state))
        restored = import_document(text, AppState())
        assert restored.expenses == state.expenses
        assert restored.categories == state.categories
        assert restored.settings == state.settings

    def test_bytes_payload(self, state):
        payload = dumps_document(export_document(state)).encode("utf-8")
        assert import_document(payload, AppState()).expenses == state.expenses

    def test_absent_sections_are_kept(self, state):
        restored = import_document({"userSettings": {"name": "Outra"}}, state)
        assert restored.settings.name == "Outra"
        assert restored.expenses == state.expenses
        assert restored.categories == state.categories

    def test_settings_are_migrated(self):
        restored = import_document({"userSettings": {"monthlyBudget": 300}}, AppState())
        assert restored.settings.monthly_budgets.personal == 300
        assert restored.settings.auto_sync is True

    def test_blank_scope_name_is_imported(self):
        restored = import_document({"userSettings": {
            "name": "Ana",
            "monthlyBudgets": {"personal": 500, "business": 900},
            "names": {"personal": "", "business": "MV FRIOS"},
        }}, AppState())
        assert restored.settings.budget_for(Scope.PERSONAL) == 500
        assert restored.settings.scope_label(Scope.PERSONAL) == "Ana"
        assert restored.settings.scope_label(Scope.BUSINESS) == "MV FRIOS"

    def test_invalid_setting_is_rejected(self, state):
        with pytest.raises(BackupImportError):
            import_document({"userSettings": {"name": "Ana", "theme": "purple"}}, state)

    def test_legacy_expenses_are_normalized(self):
        restored = import_document({"expenses": [{
            "id": "old", "amount": 5, "categoryId": "1", "date": "2022-03-04",
            "description": "Pão", "createdAt": 1,
        }]}, AppState())
        assert restored.expenses[0].scope == Scope.PERSONAL

    def test_active_scope_categories_follow_document(self):
        state = AppState().switch_scope(Scope.BUSINESS)
        restored = import_document({"categories_business": [
            {"id": "b1", "name": "Aluguel", "color": "#111827"},
        ]}, state)
        assert [c.id for c in restored.active_categories] == ["b1"]

    @pytest.mark.parametrize("payload", [
        "{not json",
        "[1, 2, 3]",
        b"\xff\xfe\x00",
        "",
    ])
    def test_unreadable_document(self, payload, state):
        with pytest.raises(BackupImportError):
            import_document(payload, state)

    def test_invalid_section_applies_nothing(self, state):
        document = export_document(AppState())
        document["userSettings"] = {"name": "Nova"}
        document["expenses"] = [{"id": "x", "amount": "muito"}]
        with pytest.raises(BackupImportError) as exc_info:
            import_document(document, state)
        assert exc_info.value.problems

    def test_empty_category_section_is_rejected(self, state):
        with pytest.raises(BackupImportError):
            import_document({"categories_personal": []}, state)

    def test_applied_sections(self):
        assert applied_sections(json.dumps({"expenses": [], "userSettings": None})) == ["expenses"]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
