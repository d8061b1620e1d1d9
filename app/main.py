"""
Streamlit Frontend for Pocketbook

The screens a user works with every day:
- Início: month total, budget card, recent expenses, new expense form
- Gráficos: category breakdown and time series for a chosen period
- Histórico: search and browse every expense by day
- Ajustes: name, theme, budgets, scope names, categories, backups

DESIGN PRINCIPLES:
1. Everything shown is computed by the query layer, never in the page
2. A refused save keeps the form open with the reasons listed
3. Optional helpers (receipt photo, smart parse) never block a save
4. A scope always keeps at least one category
"""

import asyncio
from datetime import date

import streamlit as st

from pocketbook.config import get_settings, validate_all_settings
from pocketbook.models import BudgetLevel, ExpenseDraft, Scope, Theme
from pocketbook.models.expense import ICON_KEYS
from pocketbook.models.defaults import CATEGORY_COLORS
from pocketbook.orchestrator import PocketbookApp, create_app_components
from pocketbook.queries import ChartPeriod, HistoryFilter
from pocketbook.services.backup import BackupImportError
from pocketbook.state import MinimumCategoryError
from pocketbook.utils import format_currency, format_day, format_timestamp


# Page configuration
st.set_page_config(
    page_title="Pocketbook",
    page_icon="💰",
    layout="centered",
    initial_sidebar_state="expanded",
)

# Custom CSS for better UX
st.markdown("""
<style>
    .stButton>button {
        width: 100%;
        margin-top: 10px;
    }
    .success-box {
        padding: 20px;
        background-color: #d4edda;
        border-radius: 10px;
        border-left: 5px solid #28a745;
        margin: 10px 0;
    }
    .warning-box {
        padding: 20px;
        background-color: #fff3cd;
        border-radius: 10px;
        border-left: 5px solid #ffc107;
        margin: 10px 0;
    }
    .error-box {
        padding: 20px;
        background-color: #f8d7da;
        border-radius: 10px;
        border-left: 5px solid #dc3545;
        margin: 10px 0;
    }
    .big-number {
        font-size: 2.5em;
        font-weight: bold;
    }
</style>
""", unsafe_allow_html=True)


BOX_BY_LEVEL = {
    BudgetLevel.OK: "success-box",
    BudgetLevel.WARNING: "warning-box",
    BudgetLevel.OVER: "error-box",
}

HISTORY_FILTER_LABELS = {
    HistoryFilter.ALL: "Tudo",
    HistoryFilter.TODAY: "Hoje",
    HistoryFilter.WEEK: "7 dias",
    HistoryFilter.MONTH: "Mês",
    HistoryFilter.YEAR: "Ano",
}


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_app() -> PocketbookApp:
    """Get or create the application service (cached)."""
    return create_app_components()


def main():
    """Main application entry point."""
    app = get_app()
    state = app.state
    settings = state.settings

    st.sidebar.title(f"💰 Olá, {settings.name}")

    scope = st.sidebar.radio(
        "Escopo",
        options=list(Scope),
        index=list(Scope).index(state.current_scope),
        format_func=settings.scope_label,
    )
    if scope != state.current_scope:
        app.switch_scope(scope)
        st.rerun()

    st.sidebar.markdown("---")
    page = st.sidebar.radio(
        "Navegar:",
        ["🏠 Início", "📈 Gráficos", "🕘 Histórico", "⚙️ Ajustes"],
        index=0,
    )

    if settings.last_synced_at:
        st.sidebar.caption(f"Salvo em {format_timestamp(settings.last_synced_at)}")

    if page == "🏠 Início":
        render_home_page(app)
    elif page == "📈 Gráficos":
        render_charts_page(app)
    elif page == "🕘 Histórico":
        render_history_page(app)
    elif page == "⚙️ Ajustes":
        render_settings_page(app)


def render_home_page(app: PocketbookApp):
    """Render the home page."""
    state = app.state
    summary = app.month_summary()
    st.title(f"🏠 {state.settings.scope_label(state.current_scope)}")

    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric("Este mês", format_currency(summary.month_total))
    with col2:
        st.metric("Mês anterior", format_currency(summary.previous_month_total))
    with col3:
        st.metric("Média diária", format_currency(summary.daily_average))

    budget = summary.budget
    if budget.is_set:
        st.progress(budget.bar_fill / 100)
        if budget.is_over_budget:
            text = f"Orçamento excedido em {format_currency(budget.exceeded_amount)}"
        else:
            text = f"Restam {format_currency(budget.remaining)} de {format_currency(budget.budget)}"
        st.markdown(f"""
        <div class="{BOX_BY_LEVEL[budget.level]}">
            <p><strong>{budget.percentage:.0f}%</strong> do orçamento usado. {text}</p>
        </div>
        """, unsafe_allow_html=True)
    else:
        st.info("Defina um orçamento mensal em Ajustes.")

    st.markdown("---")
    render_expense_form(app)

    st.markdown("---")
    st.subheader("Recentes")
    if not summary.recent:
        st.info("Nenhuma despesa ainda.")
    for expense in summary.recent:
        render_expense_row(app, expense)


def render_expense_row(app: PocketbookApp, expense, repeats: int = 0):
    category = app.state.find_category(app.state.current_scope, expense.category_id)
    name = category.name if category else "Unknown"
    col1, col2, col3 = st.columns([4, 2, 1])
    with col1:
        badge = f" · {repeats}x no mês" if repeats > 1 else ""
        st.markdown(f"**{expense.description}**  \n{name} · {format_day(expense.spent_on)}{badge}")
    with col2:
        st.markdown(f"**{format_currency(expense.amount)}**")
    with col3:
        if st.button("✏️", key=f"edit_{expense.id}"):
            st.session_state.editing_id = expense.id
            st.session_state.draft = ExpenseDraft.from_expense(expense)
            st.rerun()
    if expense.receipt_image:
        with st.expander("🧾 Comprovante"):
            st.image(expense.receipt_image, width=300)


def render_expense_form(app: PocketbookApp):
    """New / edit expense form with the optional helpers."""
    if "draft" not in st.session_state:
        st.session_state.draft = ExpenseDraft(spent_on=date.today())
    if "editing_id" not in st.session_state:
        st.session_state.editing_id = None
    if "upload_session" not in st.session_state:
        st.session_state.upload_session = app.new_upload_session()

    editing_id = st.session_state.editing_id
    draft: ExpenseDraft = st.session_state.draft
    categories = app.state.active_categories

    st.subheader("✏️ Editar despesa" if editing_id else "➕ Nova despesa")

    if app.smart_parse_available:
        text = st.text_input("Descreva o gasto", placeholder="ex.: almoço 45,90 ontem")
        if st.button("✨ Preencher") and text:
            with st.spinner("Analisando..."):
                parsed = run_async(app.smart_parse(text))
            if parsed is None:
                st.warning("Não foi possível interpretar o texto. Preencha manualmente.")
            else:
                st.session_state.draft = parsed
                st.rerun()

    names = app.category_choices(draft.category_id if editing_id else None)
    category_ids = list(names)
    index = category_ids.index(draft.category_id) if draft.category_id in names else 0
    if editing_id and draft.category_id not in {c.id for c in categories}:
        st.warning("A categoria desta despesa foi excluída. Escolha outra ou mantenha como Unknown.")

    amount = st.text_input("Valor (R$) *", value=draft.amount or "")
    category_id = st.selectbox(
        "Categoria *",
        options=category_ids,
        index=index,
        format_func=lambda cid: names[cid],
    )
    description = st.text_input("Descrição *", value=draft.description or "")
    spent_on = st.date_input("Data *", value=draft.spent_on or date.today())

    upload = st.file_uploader(
        "Foto do comprovante (opcional)",
        type=get_settings().app.supported_formats_list,
    )
    if upload is not None:
        # Reruns submit the same file id; the session hands back its earlier result
        draft = run_async(app.attach_receipt(
            draft,
            upload.getvalue(),
            st.session_state.upload_session,
            source_id=upload.file_id,
        ))
        if draft.receipt_image is None:
            st.warning("Imagem ilegível; a despesa será salva sem comprovante.")
    if draft.receipt_image:
        st.image(draft.receipt_image, width=200)

    col1, col2 = st.columns(2)
    with col1:
        if st.button("💾 Salvar", type="primary"):
            submitted = ExpenseDraft(
                amount=amount,
                category_id=category_id,
                description=description,
                spent_on=spent_on,
                receipt_image=draft.receipt_image,
            )
            expense, result = app.save_expense(submitted, expense_id=editing_id)
            if expense is None:
                for issue in result.issues:
                    st.error(issue.message)
            else:
                for warning in result.warnings:
                    st.warning(warning)
                st.success("Despesa atualizada!" if editing_id else "Despesa salva com sucesso!")
                reset_form(app)
                st.rerun()
    with col2:
        if editing_id and st.button("🗑️ Excluir"):
            app.delete_expense(editing_id)
            reset_form(app)
            st.rerun()


def reset_form(app: PocketbookApp):
    st.session_state.draft = ExpenseDraft(spent_on=date.today())
    st.session_state.editing_id = None
    st.session_state.upload_session.clear()


def render_charts_page(app: PocketbookApp):
    """Render the charts page."""
    st.title("📈 Gráficos")

    periods = app.chart_periods()
    keys = [p.key for p in periods]
    period_key = st.selectbox(
        "Período",
        options=keys,
        index=keys.index("last_30_days"),
        format_func=lambda k: ChartPeriod.from_key(k).label,
    )
    period = ChartPeriod.from_key(period_key)

    categories = app.state.active_categories
    names = {c.id: c.name for c in categories}
    selected = st.multiselect(
        "Categorias",
        options=list(names),
        default=list(names),
        format_func=lambda cid: names[cid],
    )

    report = app.chart_report(period, selected)
    st.markdown(f'<div class="big-number">{format_currency(report.total)}</div>', unsafe_allow_html=True)
    st.caption(f"{report.expense_count} despesa(s)")

    if not report.series:
        st.info("Sem dados para este período.")
        return

    st.bar_chart(
        [{"Período": b.label, "Total": float(b.total)} for b in report.series],
        x="Período",
        y="Total",
    )

    for share in report.categories:
        st.markdown(
            f"<span style='color:{share.color}'>●</span> **{share.name}** "
            f"{format_currency(share.total)} ({share.percentage:.1f}%)",
            unsafe_allow_html=True,
        )


def render_history_page(app: PocketbookApp):
    """Render the history page."""
    st.title("🕘 Histórico")

    term = st.text_input("Buscar", placeholder="descrição, categoria ou valor")
    window = st.radio(
        "Período",
        options=list(HistoryFilter),
        format_func=HISTORY_FILTER_LABELS.get,
        horizontal=True,
    )

    days = app.history(term, window)
    if not days:
        st.info("Nenhuma despesa encontrada.")
    repeats = app.repeat_counts()
    for day in days:
        st.markdown(f"### {format_day(day.day)} · {format_currency(day.total)}")
        for expense in day.expenses:
            render_expense_row(app, expense, repeats[(expense.month_key, expense.category_id)])


def render_settings_page(app: PocketbookApp):
    """Render the settings page."""
    st.title("⚙️ Ajustes")
    state = app.state
    settings = state.settings

    st.markdown("### Perfil")
    name = st.text_input("Seu nome", value=settings.name)
    if name != settings.name and name.strip():
        app.set_user_name(name)

    dark = st.toggle("Tema escuro", value=settings.theme == Theme.DARK)
    if dark != (settings.theme == Theme.DARK):
        app.toggle_theme()

    auto_sync = st.toggle("Salvamento automático", value=bool(settings.auto_sync))
    if auto_sync != bool(settings.auto_sync):
        app.set_auto_sync(auto_sync)

    st.markdown("### Orçamento e nomes")
    for scope in Scope:
        label = st.text_input(f"Nome do escopo {scope.value}", value=settings.scope_label(scope))
        if label.strip() and label != settings.scope_label(scope):
            app.set_scope_name(scope, label)
        budget = st.number_input(
            f"Orçamento mensal ({settings.scope_label(scope)})",
            min_value=0.0,
            step=50.0,
            value=float(settings.budget_for(scope)),
        )
        if budget != settings.budget_for(scope):
            app.set_budget(budget, scope)

    st.markdown("### Categorias")
    for category in state.active_categories:
        col1, col2 = st.columns([5, 1])
        with col1:
            st.markdown(
                f"<span style='color:{category.color}'>●</span> {category.name}",
                unsafe_allow_html=True,
            )
        with col2:
            if st.button("🗑️", key=f"delcat_{category.id}"):
                try:
                    app.delete_category(category.id)
                    st.rerun()
                except MinimumCategoryError:
                    st.error("Mantenha pelo menos uma categoria.")

    with st.expander("➕ Nova categoria"):
        new_name = st.text_input("Nome")
        color = st.selectbox("Cor", options=list(CATEGORY_COLORS))
        icon = st.selectbox("Ícone", options=list(ICON_KEYS))
        if st.button("Adicionar"):
            category, issues = app.add_category(new_name, color, icon)
            for issue in issues:
                st.error(issue.message)
            if category is not None:
                st.rerun()

    st.markdown("### Calculadora de devolução")
    col1, col2 = st.columns(2)
    with col1:
        income = st.text_input("Entradas (R$)", value="")
    with col2:
        spent = st.text_input("Saídas (R$)", value="")
    try:
        result = app.tithe(income, spent)
    except ValueError:
        st.error("Informe valores numéricos.")
    else:
        st.markdown(
            f"Saldo: **{format_currency(result.balance)}** · "
            f"Devolução (10%): **{format_currency(result.tithe)}**"
        )

    st.markdown("### Backup")
    filename, text = app.export_backup()
    st.download_button("⬇️ Exportar dados", data=text, file_name=filename, mime="application/json")

    backup = st.file_uploader("Restaurar backup", type=["json"])
    if backup is not None and st.button("⬆️ Importar", type="primary"):
        try:
            app.import_backup(backup.getvalue())
            st.success("Dados restaurados com sucesso!")
        except BackupImportError:
            st.error("Erro ao ler arquivo de backup.")

    st.markdown("---")
    st.markdown("### Status")
    status = validate_all_settings()
    if status.get("gemini", False):
        st.success("✅ Gemini (preenchimento inteligente) - Configurado")
    else:
        st.info(f"ℹ️ Gemini - {status.get('gemini_error', 'Not configured')}")


if __name__ == "__main__":
    main()
