"""
Streamlit Frontend for Trip Budget Tracker

This is the interface the trip organizers use during the trip.

DESIGN PRINCIPLES:
1. The dashboard always renders, even when a collection fails to load
2. Clear error messages next to the form that caused them
3. Visual feedback for every save and delete
4. AI charts are optional extras; failing to get them never hides the totals

The public view shows aggregates only, never individual entries.
"""

import asyncio
from datetime import date, datetime, time, timezone
from decimal import Decimal

import streamlit as st

from tripbudget.agents import GenerationFailure
from tripbudget.aggregation import recent_entries, summarize_contributions
from tripbudget.audit import create_correlation_id
from tripbudget.config import get_settings, validate_all_settings
from tripbudget.demo import seed_demo_trip
from tripbudget.orchestrator import (
    DashboardFlow,
    InsightFlow,
    LedgerFlow,
    create_app_components,
)
from tripbudget.services.storage import InMemoryRecordStore, StorageError
from tripbudget.validation import InputValidationError, RecordValidator
from tripbudget.visualization import create_ai_chart, create_contributions_chart


# Page configuration
st.set_page_config(
    page_title="Trip Budget Tracker",
    page_icon="🧭",
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
    .stat-card {
        padding: 16px;
        border-radius: 10px;
        border: 1px solid #e0e0e0;
        margin: 10px 0;
    }
    .big-number {
        font-size: 2em;
        font-weight: bold;
        color: #2c3e50;
    }
    .over-budget {
        color: #dc3545;
    }
</style>
""", unsafe_allow_html=True)


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
    """Get or create application components (cached for the process)."""
    settings = get_settings()
    ledger_flow, dashboard_flow, insight_flow, store = create_app_components(settings)

    if settings.app.seed_demo_data and isinstance(store.members, InMemoryRecordStore):
        run_async(seed_demo_trip(ledger_flow))

    return ledger_flow, dashboard_flow, insight_flow


def money(amount: Decimal) -> str:
    return f"{get_settings().app.currency_symbol}{amount:,.2f}"


def show_validation_error(error: InputValidationError):
    st.error(RecordValidator().get_user_friendly_summary(error))


def show_unavailable(unavailable: list[str]):
    if unavailable:
        st.markdown(f"""
        <div class="warning-box">
            <h4>⚠️ Some data could not be loaded</h4>
            <p>Showing zero for: {", ".join(unavailable)}. Totals may be incomplete.</p>
        </div>
        """, unsafe_allow_html=True)


def stat_card(title: str, value: str, note: str = "", alert: bool = False):
    css = "big-number over-budget" if alert else "big-number"
    st.markdown(f"""
    <div class="stat-card">
        <div>{title}</div>
        <div class="{css}">{value}</div>
        <small>{note}</small>
    </div>
    """, unsafe_allow_html=True)


def as_timestamp(day: date) -> datetime:
    """Noon UTC on the chosen day, so the date survives any time zone."""
    return datetime.combine(day, time(12, 0), tzinfo=timezone.utc)


def delete_and_rerun(remove, record_id: str):
    try:
        run_async(remove(record_id))
    except StorageError as e:
        st.error(f"Failed to delete: {e}")
        return
    st.rerun()


def show_pending_warnings(key: str):
    """Warnings saved before the last rerun."""
    for message in st.session_state.pop(key, []):
        st.warning(message)


def main():
    """Main application entry point."""
    ledger_flow, dashboard_flow, insight_flow = get_components()

    # Sidebar navigation
    st.sidebar.title("🧭 Trip Budget Tracker")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        [
            "📊 Dashboard",
            "👥 Members & Expenses",
            "💵 Income",
            "🗺️ Trip Plan",
            "🏆 Summary",
            "🌐 Public View",
            "⚙️ Settings",
        ],
        index=0,
    )

    st.sidebar.markdown("---")
    st.sidebar.markdown(
        """
        **How to use:**
        1. Plan the trip days and their budgets
        2. Add the members
        3. Log expenses and incomes as they happen
        """
    )

    # Route to appropriate page
    if page == "📊 Dashboard":
        render_dashboard_page(dashboard_flow, insight_flow)
    elif page == "👥 Members & Expenses":
        render_members_page(ledger_flow)
    elif page == "💵 Income":
        render_income_page(ledger_flow)
    elif page == "🗺️ Trip Plan":
        render_trip_page(ledger_flow)
    elif page == "🏆 Summary":
        render_summary_page(dashboard_flow)
    elif page == "🌐 Public View":
        render_public_page(dashboard_flow)
    elif page == "⚙️ Settings":
        render_settings_page()


def render_dashboard_page(dashboard_flow: DashboardFlow, insight_flow: InsightFlow):
    """Render the main dashboard."""
    st.title("📊 Dashboard")

    dashboard = run_async(dashboard_flow.load_dashboard())
    show_unavailable(dashboard.unavailable)

    col1, col2, col3, col4 = st.columns(4)
    with col1:
        stat_card("Overall Budget", money(dashboard.overall_budget), f"{len(dashboard.trip_days)} trip days")
    with col2:
        stat_card("Total Expenses", money(dashboard.total_expenses), f"{len(dashboard.expenses)} expenses")
    with col3:
        stat_card("Total Income", money(dashboard.total_incomes), f"{len(dashboard.incomes)} incomes")
    with col4:
        stat_card(
            "Remaining Budget",
            money(dashboard.remaining_budget),
            "Over budget!" if dashboard.is_over_budget else "",
            alert=dashboard.is_over_budget,
        )

    st.markdown("---")
    left, right = st.columns([3, 2])

    with left:
        st.subheader("Contributions")
        contributions = summarize_contributions(dashboard.members, dashboard.expenses)
        st.plotly_chart(
            create_contributions_chart(contributions, get_settings().app.currency_symbol),
            use_container_width=True,
        )

    with right:
        st.subheader("Recent Expenses")
        recent = recent_entries(dashboard.expenses, get_settings().app.recent_entries_limit)
        if not recent:
            st.info("No expenses logged yet.")
        for expense in recent:
            st.markdown(
                f"**{expense.member_name or 'Unknown'}** · {expense.purpose}  \n"
                f"{money(expense.amount)} · {expense.timestamp.strftime('%d %b %Y, %H:%M')}"
            )

    st.markdown("---")
    render_insights_panel(dashboard, insight_flow)


def render_insights_panel(dashboard, insight_flow: InsightFlow):
    """AI chart suggestions. Failures stay inside this panel."""
    st.subheader("✨ AI-Powered Insights")
    st.markdown("Let AI suggest helpful visualizations from your trip data.")

    if "ai_charts" not in st.session_state:
        st.session_state.ai_charts = None
    if "ai_error" not in st.session_state:
        st.session_state.ai_error = None

    if not insight_flow.is_available:
        st.info("Gemini is not configured. Add GEMINI_API_KEY to enable AI charts.")
        return

    if st.button("✨ Generate Charts", type="primary"):
        st.session_state.ai_charts = None
        st.session_state.ai_error = None
        with st.spinner("Generating charts..."):
            try:
                st.session_state.ai_charts = run_async(
                    insight_flow.generate_charts(dashboard, correlation_id=create_correlation_id())
                )
            except GenerationFailure as e:
                st.session_state.ai_error = str(e)

    if st.session_state.ai_error:
        st.markdown(f"""
        <div class="error-box">
            <h4>Generation Failed</h4>
            <p>{st.session_state.ai_error}</p>
        </div>
        """, unsafe_allow_html=True)
        return

    charts = st.session_state.ai_charts
    if charts is None:
        return
    if not charts:
        st.info("The AI had no chart suggestions for this data.")
        return

    columns = st.columns(2)
    for index, config in enumerate(charts):
        with columns[index % 2]:
            st.markdown(f"**{config.title or config.kind.title()}**")
            st.caption(config.description)
            figure = create_ai_chart(config)
            if figure is None:
                st.warning(f"Unsupported chart type: {config.type}")
            else:
                st.plotly_chart(figure, use_container_width=True)


def render_members_page(ledger_flow: LedgerFlow):
    """Render member management and expense logging."""
    st.title("👥 Members & Expenses")

    try:
        members = run_async(ledger_flow.list_members())
        expenses = run_async(ledger_flow.list_expenses())
    except StorageError as e:
        st.error(f"Could not load members: {e}")
        return

    # Add member
    with st.form("add_member", clear_on_submit=True):
        st.markdown("### Add Member")
        col1, col2 = st.columns(2)
        with col1:
            name = st.text_input("Name *")
        with col2:
            role = st.text_input("Role *", placeholder="Organizer, Driver, Cook...")
        if st.form_submit_button("➕ Add Member", type="primary"):
            try:
                run_async(ledger_flow.add_member(name=name, role=role))
                st.success(f"Added {name.strip()}")
                st.rerun()
            except InputValidationError as e:
                show_validation_error(e)
            except StorageError as e:
                st.error(f"Failed to save: {e}")

    # Log expense
    render_entry_form("expense", members, ledger_flow.add_expense)

    st.markdown("---")
    st.markdown("### Members")
    if not members:
        st.info("No members yet. Add the first one above.")

    for member in members:
        member_expenses = [e for e in expenses if e.member_id == member.id]
        spent = sum((e.amount for e in member_expenses), Decimal("0"))
        with st.expander(f"{member.name} · {member.role} · spent {money(spent)}"):
            col1, col2 = st.columns(2)
            with col1:
                new_name = st.text_input("Name", value=member.name, key=f"name_{member.id}")
            with col2:
                new_role = st.text_input("Role", value=member.role, key=f"role_{member.id}")

            col1, col2 = st.columns(2)
            with col1:
                if st.button("💾 Save", key=f"save_{member.id}"):
                    try:
                        run_async(ledger_flow.update_member(member.id, name=new_name, role=new_role))
                        st.rerun()
                    except InputValidationError as e:
                        show_validation_error(e)
                    except StorageError as e:
                        st.error(f"Failed to save: {e}")
            with col2:
                if st.button("🗑️ Delete Member", key=f"delete_{member.id}"):
                    delete_and_rerun(ledger_flow.remove_member, member.id)

            st.caption("Past expenses keep the name they were logged under.")
            render_entry_list(member_expenses, members, ledger_flow.update_expense, ledger_flow.remove_expense)


def render_income_page(ledger_flow: LedgerFlow):
    """Render income logging."""
    st.title("💵 Income")
    st.markdown("Money received during the trip (refunds, top-ups, contributions).")

    try:
        members = run_async(ledger_flow.list_members())
        incomes = run_async(ledger_flow.list_incomes())
    except StorageError as e:
        st.error(f"Could not load incomes: {e}")
        return

    render_entry_form("income", members, ledger_flow.add_income)

    st.markdown("---")
    total = sum((i.amount for i in incomes), Decimal("0"))
    st.markdown(f"### All Income · {money(total)}")
    if not incomes:
        st.info("No income logged yet.")
    render_entry_list(incomes, members, ledger_flow.update_income, ledger_flow.remove_income)


def render_entry_form(kind: str, members, add):
    """Form for a new expense or income."""
    with st.form(f"add_{kind}", clear_on_submit=True):
        st.markdown(f"### Log {kind.title()}")
        if not members:
            st.caption("Add a member first.")

        col1, col2 = st.columns(2)
        with col1:
            member = st.selectbox(
                "Member *",
                options=[None] + list(members),
                format_func=lambda m: "Select a member" if m is None else m.name,
            )
            amount = st.number_input(
                f"Amount ({get_settings().app.currency_symbol}) *",
                min_value=0.0,
                step=10.0,
                format="%.2f",
            )
        with col2:
            purpose = st.text_input("Purpose *", placeholder="Fuel, lunch, tickets...")
            when = st.date_input("Date", value=date.today())

        if st.form_submit_button(f"➕ Log {kind.title()}", type="primary"):
            try:
                run_async(add(
                    member_id=member.id if member else "",
                    amount=Decimal(str(amount)),
                    purpose=purpose,
                    timestamp=None if when == date.today() else as_timestamp(when),
                ))
                st.success(f"{kind.title()} saved")
                st.rerun()
            except InputValidationError as e:
                show_validation_error(e)
            except StorageError as e:
                st.error(f"Failed to save: {e}")


def render_entry_list(entries, members, update, remove):
    """Editable list of expenses or incomes."""
    member_ids = [m.id for m in members]
    for entry in entries:
        st.markdown(
            f"**{entry.purpose}** · {money(entry.amount)} · "
            f"{entry.member_name or 'Unknown'} · {entry.timestamp.strftime('%d %b %Y')}"
        )
        with st.popover("✏️ Edit"):
            index = member_ids.index(entry.member_id) if entry.member_id in member_ids else None
            member = st.selectbox(
                "Member",
                options=list(members),
                index=index,
                format_func=lambda m: m.name,
                key=f"member_{entry.id}",
            )
            amount = st.number_input(
                "Amount",
                value=float(entry.amount),
                min_value=0.0,
                step=10.0,
                format="%.2f",
                key=f"amount_{entry.id}",
            )
            purpose = st.text_input("Purpose", value=entry.purpose, key=f"purpose_{entry.id}")

            col1, col2 = st.columns(2)
            with col1:
                if st.button("💾 Save", key=f"save_{entry.id}"):
                    try:
                        run_async(update(
                            entry.id,
                            member_id=member.id if member and member.id != entry.member_id else None,
                            amount=Decimal(str(amount)),
                            purpose=purpose,
                        ))
                        st.rerun()
                    except InputValidationError as e:
                        show_validation_error(e)
                    except StorageError as e:
                        st.error(f"Failed to save: {e}")
            with col2:
                if st.button("🗑️ Delete", key=f"delete_{entry.id}"):
                    delete_and_rerun(remove, entry.id)


def render_trip_page(ledger_flow: LedgerFlow):
    """Render the trip plan."""
    st.title("🗺️ Trip Plan")

    try:
        trip_days = run_async(ledger_flow.list_trip_days())
    except StorageError as e:
        st.error(f"Could not load the trip plan: {e}")
        return

    show_pending_warnings("trip_day_warnings")

    with st.form("add_trip_day", clear_on_submit=True):
        st.markdown("### Add Trip Day")
        col1, col2 = st.columns(2)
        with col1:
            label = st.text_input("Label", placeholder="Day 1")
            day = st.date_input("Date *", value=date.today())
        with col2:
            budget = st.number_input(
                f"Budget ({get_settings().app.currency_symbol}) *",
                min_value=0.0,
                step=100.0,
                format="%.2f",
            )
        places = st.text_area("Places to visit *", placeholder="Tea Estates, Nirar Dam")

        if st.form_submit_button("➕ Add Day", type="primary"):
            try:
                _, warnings = run_async(ledger_flow.add_trip_day(
                    day=day,
                    places=places,
                    budget=Decimal(str(budget)),
                    label=label,
                ))
                st.session_state["trip_day_warnings"] = [w.message for w in warnings]
                st.rerun()
            except InputValidationError as e:
                show_validation_error(e)
            except StorageError as e:
                st.error(f"Failed to save: {e}")

    st.markdown("---")
    total = sum((d.budget for d in trip_days), Decimal("0"))
    st.markdown(f"### Itinerary · {money(total)}")
    if not trip_days:
        st.info("No days planned yet.")

    for trip_day in trip_days:
        with st.expander(f"{trip_day.display_label} · {trip_day.date.strftime('%d %b %Y')} · {money(trip_day.budget)}"):
            st.markdown(trip_day.places)
            new_label = st.text_input("Label", value=trip_day.label, key=f"label_{trip_day.id}")
            new_date = st.date_input("Date", value=trip_day.date, key=f"date_{trip_day.id}")
            new_places = st.text_area("Places", value=trip_day.places, key=f"places_{trip_day.id}")
            new_budget = st.number_input(
                "Budget",
                value=float(trip_day.budget),
                min_value=0.0,
                step=100.0,
                format="%.2f",
                key=f"budget_{trip_day.id}",
            )
            col1, col2 = st.columns(2)
            with col1:
                if st.button("💾 Save", key=f"save_{trip_day.id}"):
                    try:
                        warnings = run_async(ledger_flow.update_trip_day(
                            trip_day.id,
                            day=new_date if new_date != trip_day.date else None,
                            places=new_places,
                            budget=Decimal(str(new_budget)),
                            label=new_label,
                        ))
                        st.session_state["trip_day_warnings"] = [w.message for w in warnings]
                        st.rerun()
                    except InputValidationError as e:
                        show_validation_error(e)
                    except StorageError as e:
                        st.error(f"Failed to save: {e}")
            with col2:
                if st.button("🗑️ Delete Day", key=f"delete_{trip_day.id}"):
                    delete_and_rerun(ledger_flow.remove_trip_day, trip_day.id)


def render_summary_page(dashboard_flow: DashboardFlow):
    """Members ranked by spend, with their expenses."""
    st.title("🏆 Summary")

    contributions, dashboard = run_async(dashboard_flow.load_contributions())
    show_unavailable(dashboard.unavailable)

    if not contributions:
        st.info("No members yet.")

    for rank, contribution in enumerate(contributions, start=1):
        with st.expander(
            f"#{rank} {contribution.initials} · {contribution.name} ({contribution.role}) · "
            f"{money(contribution.total_spent)}"
        ):
            if not contribution.expenses:
                st.caption("No expenses yet.")
            for expense in contribution.expenses:
                st.markdown(
                    f"- {expense.purpose}: {money(expense.amount)} "
                    f"({expense.timestamp.strftime('%d %b %Y')})"
                )


def render_public_page(dashboard_flow: DashboardFlow):
    """Read-only aggregates for anyone with the link."""
    st.title("🌐 Trip at a Glance")

    public = run_async(dashboard_flow.load_public_dashboard())

    col1, col2, col3 = st.columns(3)
    with col1:
        stat_card("Overall Budget", money(public.overall_budget))
    with col2:
        stat_card("Spent", money(public.total_expenses), f"{public.member_count} members")
    with col3:
        stat_card(
            "Remaining",
            money(public.remaining_budget),
            "Over budget!" if public.is_over_budget else "",
            alert=public.is_over_budget,
        )

    st.markdown("### Per Member")
    for contribution in public.contributions:
        st.markdown(f"- **{contribution.name}**: {money(contribution.total)}")


def render_settings_page():
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Connection Status")

    status = validate_all_settings()

    services = [
        ("Google Sheets (Storage)", "google_sheets"),
        ("Gemini (AI Charts)", "gemini"),
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
        "To configure the application, create a `.env` file with your credentials. "
        "See `.env.example` for the required variables."
    )


if __name__ == "__main__":
    main()
