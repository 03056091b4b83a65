"""
Streamlit Frontend for Expense Tracker

DESIGN PRINCIPLES:
1. Simple, clear interface
2. Clear error messages in simple language
3. Visual feedback for all operations
4. No hidden actions

Every page is a thin renderer over a view controller from
expense_tracker.views. Controllers hold the state; pages draw it and
forward user input. The signed-in session is the only thing pages share.
"""

import asyncio
from datetime import date
from decimal import Decimal

import streamlit as st

from expense_tracker.auth import AuthenticationError
from expense_tracker.config import validate_all_settings
from expense_tracker.orchestrator import SessionViews, create_app_components
from expense_tracker.queries import BudgetStatus, Timeframe
from expense_tracker.validation import ValidationError
from expense_tracker.views import over_budget_banner


# Page configuration
st.set_page_config(
    page_title="Expense Tracker",
    page_icon="💰",
    layout="wide",
    initial_sidebar_state="expanded",
)

# Custom CSS for better UX
st.markdown("""
<style>
    .stButton>button {
        width: 100%;
        margin-top: 10px;
    }
    .warning-box {
        padding: 20px;
        background-color: #fff3cd;
        border-radius: 10px;
        border-left: 5px solid #ffc107;
        margin: 10px 0;
    }
    .big-number {
        font-size: 2.5em;
        font-weight: bold;
        color: #2c3e50;
    }
</style>
""", unsafe_allow_html=True)


PAGES = [
    "📋 Expenses",
    "➕ Add Expense",
    "📊 Statistics",
    "🎯 Budgets",
    "🏷️ Categories",
    "🕑 Activity Log",
    "⚙️ Settings",
]


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_components():
    """Get or create application components (cached)."""
    return create_app_components()


def money(amount: Decimal) -> str:
    symbol = get_components().settings.currency_symbol
    return f"{symbol}{amount:,.2f}"


def show_messages(state) -> None:
    if state.error:
        st.error(state.error)
    if state.notice:
        st.success(state.notice)


def main():
    """Main application entry point."""
    components = get_components()

    if "views" not in st.session_state:
        st.session_state.views = None

    views = st.session_state.views
    if views is None:
        render_sign_in_page(components)
        return

    # Sidebar navigation
    st.sidebar.title("💰 Expense Tracker")
    st.sidebar.caption(f"Signed in as {views.session.email}")
    st.sidebar.markdown("---")

    page = st.sidebar.radio("Navigate to:", PAGES, index=0)

    st.sidebar.markdown("---")
    if st.sidebar.button("Sign out"):
        components.identity.sign_out(views.session)
        st.session_state.views = None
        st.rerun()

    # Route to appropriate page
    if page == "📋 Expenses":
        render_expenses_page(views)
    elif page == "➕ Add Expense":
        render_add_expense_page(views)
    elif page == "📊 Statistics":
        render_statistics_page(views)
    elif page == "🎯 Budgets":
        render_budgets_page(views)
    elif page == "🏷️ Categories":
        render_categories_page(views)
    elif page == "🕑 Activity Log":
        render_activity_page(views)
    elif page == "⚙️ Settings":
        render_settings_page(components)


def render_sign_in_page(components):
    """Sign in or create an account."""
    st.title("💰 Expense Tracker")

    sign_in_tab, sign_up_tab = st.tabs(["Sign in", "Create account"])

    with sign_in_tab:
        with st.form("sign_in"):
            email = st.text_input("Email")
            password = st.text_input("Password", type="password")
            submitted = st.form_submit_button("Sign in", type="primary")
        if submitted:
            try:
                session = run_async(components.identity.sign_in(email, password))
            except AuthenticationError as e:
                st.error(str(e))
            else:
                st.session_state.views = SessionViews(components, session)
                st.rerun()

    with sign_up_tab:
        with st.form("sign_up"):
            email = st.text_input("Email", key="sign_up_email")
            password = st.text_input("Password", type="password", key="sign_up_password")
            submitted = st.form_submit_button("Create account", type="primary")
        if submitted:
            try:
                session = run_async(components.identity.sign_up(email, password))
            except (AuthenticationError, ValidationError) as e:
                st.error(str(e))
            else:
                st.session_state.views = SessionViews(components, session)
                st.rerun()


def render_expenses_page(views: SessionViews):
    """Filtered, paginated list with soft delete and budget highlighting."""
    st.title("📋 Expenses")
    view = views.expense_list
    state = view.state
    if state.result is None:
        run_async(view.load())

    categories = run_async(views.categories.load()).categories
    options = [None] + [c.id for c in categories]
    names = {c.id: c.name for c in categories}

    col1, col2, col3 = st.columns(3)
    with col1:
        start_date = st.date_input("From", value=state.start_date)
    with col2:
        end_date = st.date_input("To", value=state.end_date)
    with col3:
        category_id = st.selectbox(
            "Category",
            options=options,
            index=options.index(state.category_id) if state.category_id in options else 0,
            format_func=lambda x: "All Categories" if x is None else names.get(x, "Unknown"),
        )

    if (start_date, end_date, category_id) != (state.start_date, state.end_date, state.category_id):
        run_async(view.set_filter(start_date, end_date, category_id))

    show_messages(state)

    for item in state.over_budget:
        st.markdown(over_budget_banner(item, money), unsafe_allow_html=True)

    st.markdown(f'<div class="big-number">{money(state.page_total)}</div>', unsafe_allow_html=True)
    st.caption("Total of the active expenses on this page")
    st.markdown("---")

    if not state.rows:
        st.info("No expenses in this period. Use 'Add Expense' to record one.")
        return

    for expense in state.rows:
        col1, col2, col3, col4 = st.columns([2, 4, 2, 1])
        label = expense.description or "-"
        if expense.is_deleted:
            label = f"~~{label}~~ (deleted)"
        with col1:
            st.write(expense.date.strftime("%d %b %Y"))
        with col2:
            flag = " 🔴" if view.is_over_budget(expense) else ""
            st.write(f"{label} · {view.category_name(expense)}{flag}")
        with col3:
            st.write(money(expense.amount))
        with col4:
            if not expense.is_deleted and st.button("🗑️", key=f"delete_{expense.id}"):
                run_async(view.delete(expense.id))
                st.rerun()

    col1, col2, col3 = st.columns([1, 2, 1])
    with col1:
        if st.button("◀ Previous", disabled=not state.result.has_previous):
            run_async(view.go_to_page(state.page - 1))
            st.rerun()
    with col2:
        st.write(f"Page {state.page} of {max(state.total_pages, 1)}")
    with col3:
        if st.button("Next ▶", disabled=not state.result.has_next):
            run_async(view.go_to_page(state.page + 1))
            st.rerun()


def render_add_expense_page(views: SessionViews):
    """Add-expense form."""
    st.title("➕ Add Expense")
    categories = run_async(views.categories.load()).categories
    form = views.expense_form

    with st.form("add_expense", clear_on_submit=True):
        amount = st.text_input("Amount *", placeholder="0.00")
        category = st.selectbox(
            "Category *",
            options=[None] + categories,
            format_func=lambda c: "Select a category" if c is None else c.name,
        )
        expense_date = st.date_input("Date *", value=date.today())
        description = st.text_input("Description")
        submitted = st.form_submit_button("Add Expense", type="primary")

    if submitted:
        run_async(form.submit(
            amount=amount,
            category_id=category.id if category else None,
            expense_date=expense_date,
            description=description,
        ))
        if form.state.last_saved is not None and form.state.error is None:
            views.expense_list.state.result = None

    show_messages(form.state)
    if form.state.warning:
        st.warning(form.state.warning)


def render_statistics_page(views: SessionViews):
    """Category totals for the month or year, and trailing monthly totals."""
    st.title("📊 Statistics")
    timeframe = st.selectbox(
        "Timeframe",
        options=list(Timeframe),
        format_func=lambda t: "This Month" if t == Timeframe.MONTH else "This Year",
    )
    state = run_async(views.statistics.load(timeframe))
    show_messages(state)

    if state.categories is not None:
        st.subheader(state.categories.description)
        st.markdown(f'<div class="big-number">{money(state.categories.total)}</div>', unsafe_allow_html=True)
        for row in state.categories.rows:
            st.write(f"**{row.category_name}** · {money(row.total)} · {row.percentage:.1f}%")
            st.progress(min(row.percentage / 100, 1.0))

    st.markdown("---")
    st.subheader("Month by month")
    for month in state.monthly:
        with st.expander(f"{month.label} · {money(month.total)}"):
            if not month.breakdown:
                st.caption("No spending")
            for row in month.breakdown:
                st.write(f"{row.category_name}: {money(row.total)}")

    st.markdown("---")
    st.subheader("Budgets this month")
    overview = run_async(views.budget_overview.load())
    show_messages(overview)
    badges = {BudgetStatus.OK: "🟢", BudgetStatus.WARNING: "🟡", BudgetStatus.OVER: "🔴"}
    for row in overview.rows:
        st.write(
            f"{badges[row.status]} **{row.category_name}** · "
            f"{money(row.spent)} of {money(row.budget)} "
            f"({row.percentage_used:.0f}%), {money(row.remaining)} left"
        )
        st.progress(min(row.percentage_used / 100, 1.0))


def render_budgets_page(views: SessionViews):
    """Per-category monthly budgets, saved as a full replace."""
    st.title("🎯 Budgets")
    view = views.budgets
    if not view.state.dirty:
        run_async(view.load())
    categories = run_async(views.categories.load()).categories

    for category in categories:
        current = view.amount_for(category.id)
        raw = st.text_input(
            f"{category.name}",
            value="" if current == 0 else str(current),
            key=f"budget_{category.id}",
        )
        if raw != ("" if current == 0 else str(current)):
            view.edit(category.id, raw)

    if st.button("💾 Save Budgets", type="primary"):
        run_async(view.save())
        views.expense_list.state.result = None

    show_messages(view.state)


def render_categories_page(views: SessionViews):
    """List, add and edit categories."""
    st.title("🏷️ Categories")
    view = views.categories
    run_async(view.load())

    with st.form("add_category", clear_on_submit=True):
        col1, col2 = st.columns(2)
        with col1:
            name = st.text_input("Name")
        with col2:
            icon = st.text_input("Icon", placeholder="e.g. coffee")
        if st.form_submit_button("Add Category", type="primary"):
            run_async(view.create(name, icon))

    show_messages(view.state)
    st.markdown("---")

    for category in view.state.categories:
        if not view.can_edit(category):
            st.write(f"{category.icon} · {category.name}")
            continue
        with st.expander(f"{category.icon} · {category.name}"):
            new_name = st.text_input("Name", value=category.name, key=f"name_{category.id}")
            new_icon = st.text_input("Icon", value=category.icon, key=f"icon_{category.id}")
            if st.button("Save", key=f"save_{category.id}"):
                run_async(view.update(category.id, new_name, new_icon))
                st.rerun()


def render_activity_page(views: SessionViews):
    """Reverse-chronological add/delete history."""
    st.title("🕑 Activity Log")
    state = run_async(views.activity.load())
    show_messages(state)

    if not state.rows:
        st.info("No activity yet.")
        return

    for row in state.rows:
        icon = "➕" if row.action.value == "add" else "🗑️"
        amount = money(row.amount) if row.amount is not None else "-"
        st.write(
            f"{icon} {row.created_at.strftime('%d %b %Y %H:%M')} · "
            f"{row.description or '-'} · {row.category_name or 'Unknown'} · {amount}"
        )


def render_settings_page(components):
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Connection Status")

    status = validate_all_settings()
    st.write(f"Storage in use: **{components.backend_name}**")

    services = [
        ("Google Sheets (Storage)", "google_sheets"),
        ("Application", "app"),
    ]

    for name, key in services:
        if status.get(key, False):
            st.success(f"✅ {name} - Configured")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    st.markdown("---")
    st.markdown("### Configuration")
    st.markdown(
        "To configure the application, create a `.env` file. "
        "See `.env.example` for the required variables."
    )


if __name__ == "__main__":
    main()
