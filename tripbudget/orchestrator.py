"""
Main Orchestrator for Trip Budget Tracker

This module ties together all the components and defines the flows for:
1. Ledger edits (validate → resolve member → write → audit)
2. Dashboard reads (fetch four collections → degrade failures → aggregate)
3. AI chart suggestions (dashboard → request → Gemini → validated charts)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Nothing reaches the store without passing validation
- A failed collection fetch never breaks the dashboard
- A failed chart generation never touches the rest of the dashboard
- Every change is audited
"""

import asyncio
from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

import structlog

from tripbudget.agents import ChartInsightAgent, GenerationFailure
from tripbudget.aggregation import (
    build_chart_request,
    compute_dashboard,
    summarize_contributions,
    to_public_dashboard,
)
from tripbudget.audit import AuditLogger, configure_logging, create_correlation_id
from tripbudget.config import Settings, get_settings
from tripbudget.models.charts import ChartConfiguration
from tripbudget.models.dashboard import (
    DashboardData,
    MemberContribution,
    PublicDashboard,
)
from tripbudget.models.records import (
    Expense,
    Income,
    LedgerEntryCreate,
    LedgerEntryUpdate,
    Member,
    MemberCreate,
    MemberUpdate,
    TripDay,
    TripDayCreate,
    TripDayUpdate,
)
from tripbudget.services.storage import (
    Collection,
    GoogleSheetsClient,
    NotFoundError,
    StorageError,
    TripStore,
    create_memory_trip_store,
    create_sheets_trip_store,
)
from tripbudget.validation import (
    InputValidationError,
    RecordValidator,
    ValidationIssue,
)


logger = structlog.get_logger(__name__)


def _supplied(**fields) -> dict:
    """Keep only the fields the caller actually passed."""
    return {key: value for key, value in fields.items() if value is not None}


class LedgerFlow:
    """
    Orchestrates admin edits to members, expenses, incomes and trip days.

    Flow for every write:
    1. Validate → InputValidationError, store not touched
    2. Resolve references (the member behind an expense or income)
    3. Write to the store
    4. Audit

    Store failures are audited, then propagate as StorageError for the UI to report.
    """

    def __init__(
        self,
        store: TripStore,
        validator: Optional[RecordValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._validator = validator or RecordValidator()
        self._audit_logger = audit_logger or AuditLogger()

    async def _validate(self, collection: Collection, model, payload: dict, correlation_id):
        try:
            return self._validator.validate(model, payload)
        except InputValidationError as e:
            await self._audit_logger.log_validation_failed(
                collection=collection.value,
                issues=e.to_dicts(),
                correlation_id=correlation_id,
            )
            raise

    async def _resolve_member(
        self,
        collection: Collection,
        member_id: str,
        correlation_id: Optional[UUID],
    ) -> Member:
        member = await self._store.members.get_record(member_id)
        try:
            return self._validator.resolve_member(member_id, [member] if member else [])
        except InputValidationError as e:
            await self._audit_logger.log_validation_failed(
                collection=collection.value,
                issues=e.to_dicts(),
                correlation_id=correlation_id,
            )
            raise

    async def _write(
        self,
        collection: Collection,
        operation: str,
        call,
        correlation_id: Optional[UUID],
        record_id: Optional[str] = None,
    ):
        """Await a store write, auditing it if the backend fails."""
        try:
            return await call
        except NotFoundError:
            raise
        except StorageError as e:
            await self._audit_logger.log_store_write_failed(
                collection=collection.value,
                operation=operation,
                error_message=str(e),
                record_id=record_id,
                correlation_id=correlation_id,
            )
            raise

    async def _remove(
        self,
        collection: Collection,
        record_id: str,
        correlation_id: Optional[UUID],
    ) -> bool:
        correlation_id = correlation_id or create_correlation_id()
        existed = await self._write(
            collection,
            "delete",
            self._store.for_collection(collection).remove_record(record_id),
            correlation_id,
            record_id=record_id,
        )
        await self._audit_logger.log_record_deleted(
            collection=collection.value,
            record_id=record_id,
            existed=existed,
            correlation_id=correlation_id,
        )
        return existed

    # -------------------------------------------------------------------------
    # Members
    # -------------------------------------------------------------------------

    async def list_members(self) -> list[Member]:
        return await self._store.members.list_records()

    async def add_member(
        self,
        name: str,
        role: str,
        correlation_id: Optional[UUID] = None,
    ) -> str:
        """Add a trip participant. Returns the new member id."""
        correlation_id = correlation_id or create_correlation_id()
        member = await self._validate(
            Collection.MEMBERS,
            MemberCreate,
            {"name": name, "role": role},
            correlation_id,
        )

        member_id = await self._write(
            Collection.MEMBERS,
            "create",
            self._store.members.create_record(member.model_dump()),
            correlation_id,
        )
        await self._audit_logger.log_record_created(
            collection=Collection.MEMBERS.value,
            record_id=member_id,
            details={"name": member.name},
            correlation_id=correlation_id,
        )
        return member_id

    async def update_member(
        self,
        member_id: str,
        name: Optional[str] = None,
        role: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """
        Edit a member.

        NOTE: Renaming does not touch existing expenses or incomes;
        they keep the name captured when they were logged.
        """
        correlation_id = correlation_id or create_correlation_id()
        update = await self._validate(
            Collection.MEMBERS,
            MemberUpdate,
            _supplied(name=name, role=role),
            correlation_id,
        )

        fields = update.model_dump(exclude_unset=True)
        await self._write(
            Collection.MEMBERS,
            "update",
            self._store.members.update_record(member_id, fields),
            correlation_id,
            record_id=member_id,
        )
        await self._audit_logger.log_record_updated(
            collection=Collection.MEMBERS.value,
            record_id=member_id,
            fields=sorted(fields),
            correlation_id=correlation_id,
        )

    async def remove_member(
        self,
        member_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        """
        Delete a member.

        Does not cascade: the member's expenses and incomes stay in the
        ledger and still count towards the totals.
        """
        return await self._remove(Collection.MEMBERS, member_id, correlation_id)

    # -------------------------------------------------------------------------
    # Expenses and incomes
    # -------------------------------------------------------------------------

    async def _add_entry(
        self,
        collection: Collection,
        payload: dict,
        correlation_id: Optional[UUID],
    ) -> str:
        correlation_id = correlation_id or create_correlation_id()
        entry = await self._validate(collection, LedgerEntryCreate, payload, correlation_id)
        member = await self._resolve_member(collection, entry.member_id, correlation_id)

        fields = entry.model_dump(exclude_none=True)
        fields["member_name"] = member.name

        entry_id = await self._write(
            collection,
            "create",
            self._store.for_collection(collection).create_record(fields),
            correlation_id,
        )
        await self._audit_logger.log_record_created(
            collection=collection.value,
            record_id=entry_id,
            details={
                "member_id": member.id,
                "amount": str(entry.amount),
                "purpose": entry.purpose,
            },
            correlation_id=correlation_id,
        )
        return entry_id

    async def _update_entry(
        self,
        collection: Collection,
        entry_id: str,
        payload: dict,
        correlation_id: Optional[UUID],
    ) -> None:
        correlation_id = correlation_id or create_correlation_id()
        update = await self._validate(collection, LedgerEntryUpdate, payload, correlation_id)

        fields = update.model_dump(exclude_unset=True)
        if "member_id" in fields:
            member = await self._resolve_member(collection, fields["member_id"], correlation_id)
            fields["member_name"] = member.name

        # Merge: an omitted timestamp is simply not written
        await self._write(
            collection,
            "update",
            self._store.for_collection(collection).update_record(entry_id, fields),
            correlation_id,
            record_id=entry_id,
        )
        await self._audit_logger.log_record_updated(
            collection=collection.value,
            record_id=entry_id,
            fields=sorted(fields),
            correlation_id=correlation_id,
        )

    async def list_expenses(self) -> list[Expense]:
        return await self._store.expenses.list_records()

    async def add_expense(
        self,
        member_id: str,
        amount: Decimal,
        purpose: str,
        timestamp: Optional[datetime] = None,
        correlation_id: Optional[UUID] = None,
    ) -> str:
        """Log an expense for a member. Returns the new expense id."""
        return await self._add_entry(
            Collection.EXPENSES,
            _supplied(member_id=member_id, amount=amount, purpose=purpose, timestamp=timestamp),
            correlation_id,
        )

    async def update_expense(
        self,
        expense_id: str,
        member_id: Optional[str] = None,
        amount: Optional[Decimal] = None,
        purpose: Optional[str] = None,
        timestamp: Optional[datetime] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Edit an expense. Fields left as None are not changed."""
        await self._update_entry(
            Collection.EXPENSES,
            expense_id,
            _supplied(member_id=member_id, amount=amount, purpose=purpose, timestamp=timestamp),
            correlation_id,
        )

    async def remove_expense(
        self,
        expense_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        return await self._remove(Collection.EXPENSES, expense_id, correlation_id)

    async def list_incomes(self) -> list[Income]:
        return await self._store.incomes.list_records()

    async def add_income(
        self,
        member_id: str,
        amount: Decimal,
        purpose: str,
        timestamp: Optional[datetime] = None,
        correlation_id: Optional[UUID] = None,
    ) -> str:
        """Log income received through a member. Returns the new income id."""
        return await self._add_entry(
            Collection.INCOMES,
            _supplied(member_id=member_id, amount=amount, purpose=purpose, timestamp=timestamp),
            correlation_id,
        )

    async def update_income(
        self,
        income_id: str,
        member_id: Optional[str] = None,
        amount: Optional[Decimal] = None,
        purpose: Optional[str] = None,
        timestamp: Optional[datetime] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Edit an income. Fields left as None are not changed."""
        await self._update_entry(
            Collection.INCOMES,
            income_id,
            _supplied(member_id=member_id, amount=amount, purpose=purpose, timestamp=timestamp),
            correlation_id,
        )

    async def remove_income(
        self,
        income_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        return await self._remove(Collection.INCOMES, income_id, correlation_id)

    # -------------------------------------------------------------------------
    # Trip days
    # -------------------------------------------------------------------------

    async def list_trip_days(self) -> list[TripDay]:
        return await self._store.trip_days.list_records()

    async def add_trip_day(
        self,
        day: date,
        places: str,
        budget: Decimal,
        label: str = "",
        correlation_id: Optional[UUID] = None,
    ) -> tuple[str, list[ValidationIssue]]:
        """
        Plan a trip day.

        Returns:
            (trip_day_id, warnings)
        """
        correlation_id = correlation_id or create_correlation_id()
        trip_day = await self._validate(
            Collection.TRIP_DAYS,
            TripDayCreate,
            {"date": day, "places": places, "budget": budget, "label": label},
            correlation_id,
        )

        existing = await self._store.trip_days.list_records()
        warnings = self._validator.check_trip_day(trip_day.date, existing)

        trip_day_id = await self._write(
            Collection.TRIP_DAYS,
            "create",
            self._store.trip_days.create_record(trip_day.model_dump()),
            correlation_id,
        )
        await self._audit_logger.log_record_created(
            collection=Collection.TRIP_DAYS.value,
            record_id=trip_day_id,
            details={"date": trip_day.date.isoformat(), "budget": str(trip_day.budget)},
            correlation_id=correlation_id,
        )
        return trip_day_id, warnings

    async def update_trip_day(
        self,
        trip_day_id: str,
        day: Optional[date] = None,
        places: Optional[str] = None,
        budget: Optional[Decimal] = None,
        label: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> list[ValidationIssue]:
        """
        Edit a trip day. Fields left as None are not changed.

        Returns:
            Warnings about the new date, if the date was changed
        """
        correlation_id = correlation_id or create_correlation_id()
        update = await self._validate(
            Collection.TRIP_DAYS,
            TripDayUpdate,
            _supplied(date=day, places=places, budget=budget, label=label),
            correlation_id,
        )

        fields = update.model_dump(exclude_unset=True)
        warnings = []
        if "date" in fields:
            existing = await self._store.trip_days.list_records()
            warnings = self._validator.check_trip_day(fields["date"], existing, exclude_id=trip_day_id)

        await self._write(
            Collection.TRIP_DAYS,
            "update",
            self._store.trip_days.update_record(trip_day_id, fields),
            correlation_id,
            record_id=trip_day_id,
        )
        await self._audit_logger.log_record_updated(
            collection=Collection.TRIP_DAYS.value,
            record_id=trip_day_id,
            fields=sorted(fields),
            correlation_id=correlation_id,
        )
        return warnings

    async def remove_trip_day(
        self,
        trip_day_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        return await self._remove(Collection.TRIP_DAYS, trip_day_id, correlation_id)


class DashboardFlow:
    """
    Orchestrates dashboard reads.

    The four collections are fetched concurrently and independently;
    there is no snapshot across them. Any collection that fails to load
    is replaced by an empty one and named in DashboardData.unavailable.
    """

    def __init__(
        self,
        store: TripStore,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._audit_logger = audit_logger or AuditLogger()

    async def load_dashboard(
        self,
        correlation_id: Optional[UUID] = None,
    ) -> DashboardData:
        """Fetch everything and compute the summary. Never raises for a failed fetch."""
        correlation_id = correlation_id or create_correlation_id()
        order = [
            Collection.TRIP_DAYS,
            Collection.MEMBERS,
            Collection.EXPENSES,
            Collection.INCOMES,
        ]

        results = await asyncio.gather(
            *(self._store.for_collection(c).list_records() for c in order),
            return_exceptions=True,
        )

        collections = {}
        unavailable = []
        for collection, result in zip(order, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result  # cancellation and friends
                unavailable.append(collection.value)
                collections[collection] = []
                await self._audit_logger.log_fetch_failed(
                    collection=collection.value,
                    error_message=str(result),
                    correlation_id=correlation_id,
                )
            else:
                collections[collection] = result

        dashboard = compute_dashboard(
            trip_days=collections[Collection.TRIP_DAYS],
            members=collections[Collection.MEMBERS],
            expenses=collections[Collection.EXPENSES],
            incomes=collections[Collection.INCOMES],
            unavailable=unavailable,
        )

        await self._audit_logger.log_dashboard_computed(
            totals={
                "overall_budget": str(dashboard.overall_budget),
                "total_expenses": str(dashboard.total_expenses),
                "total_incomes": str(dashboard.total_incomes),
                "remaining_budget": str(dashboard.remaining_budget),
            },
            unavailable=unavailable,
            correlation_id=correlation_id,
        )
        return dashboard

    async def load_public_dashboard(self) -> PublicDashboard:
        """Aggregates only, for the public read-only page."""
        return to_public_dashboard(await self.load_dashboard())

    async def load_contributions(self) -> tuple[list[MemberContribution], DashboardData]:
        """
        Members ranked by spend.

        Returns:
            (contributions, dashboard) - the dashboard tells the caller
            whether any collection was unavailable
        """
        dashboard = await self.load_dashboard()
        return summarize_contributions(dashboard.members, dashboard.expenses), dashboard


class InsightFlow:
    """
    Orchestrates AI chart suggestions.

    Failures surface as GenerationFailure and never affect the dashboard.
    """

    def __init__(
        self,
        agent: Optional[ChartInsightAgent] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._agent = agent
        self._audit_logger = audit_logger or AuditLogger()

    @property
    def is_available(self) -> bool:
        return self._agent is not None

    async def generate_charts(
        self,
        dashboard: DashboardData,
        correlation_id: Optional[UUID] = None,
    ) -> list[ChartConfiguration]:
        """
        Suggest charts for the dashboard's budget and expenses.

        Raises:
            GenerationFailure: If Gemini is not configured, the call
                fails, or the reply is malformed
        """
        correlation_id = correlation_id or create_correlation_id()
        request = build_chart_request(dashboard)
        await self._audit_logger.log_charts_requested(
            expense_count=len(request.expenses),
            correlation_id=correlation_id,
        )

        try:
            if self._agent is None:
                raise GenerationFailure("Gemini is not configured")
            charts = await self._agent.generate_charts(request)
        except GenerationFailure as e:
            await self._audit_logger.log_charts_failed(
                error_message=e.reason,
                correlation_id=correlation_id,
            )
            raise

        await self._audit_logger.log_charts_generated(
            chart_types=[chart.kind for chart in charts],
            correlation_id=correlation_id,
        )
        return charts


def create_trip_store(settings: Settings) -> TripStore:
    """
    Build the record store selected in settings.

    Falls back to the in-memory store when Google Sheets is selected
    but not configured.
    """
    if settings.app.storage_backend == "memory":
        return create_memory_trip_store()

    try:
        client = GoogleSheetsClient(settings.google_sheets)
    except Exception as e:
        # Storage not configured - continue without it
        logger.warning("sheets_not_configured", error=str(e))
        return create_memory_trip_store()
    return create_sheets_trip_store(client)


def create_chart_agent(settings: Settings) -> Optional[ChartInsightAgent]:
    """Build the chart agent, or None when Gemini is not configured."""
    try:
        return ChartInsightAgent(settings.gemini)
    except Exception as e:
        logger.warning("gemini_not_configured", error=str(e))
        return None


def create_app_components(
    settings: Optional[Settings] = None,
    store: Optional[TripStore] = None,
) -> tuple[LedgerFlow, DashboardFlow, InsightFlow, TripStore]:
    """
    Factory function to create all application components.

    Call once at process start; the returned store handle is shared
    by every flow.

    Args:
        settings: Settings to build from (defaults to get_settings())
        store: Pre-built store, e.g. an in-memory one for tests

    Returns:
        (ledger_flow, dashboard_flow, insight_flow, store)
    """
    settings = settings or get_settings()
    configure_logging(settings.app.log_level)

    store = store or create_trip_store(settings)
    audit_logger = AuditLogger()

    ledger_flow = LedgerFlow(store=store, audit_logger=audit_logger)
    dashboard_flow = DashboardFlow(store=store, audit_logger=audit_logger)
    insight_flow = InsightFlow(
        agent=create_chart_agent(settings),
        audit_logger=audit_logger,
    )

    return ledger_flow, dashboard_flow, insight_flow, store
