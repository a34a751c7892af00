"""
Privileged reader over call records and daily metrics.

Queries here are not scoped to the requesting user. Route handlers check the
caller's location grants first, then construct a CallRepository explicitly,
stating why elevated reads are needed; nothing holds one globally.

Every method opens its own short-lived session from the factory, so related
lookups can run concurrently on worker threads.
"""
import asyncio
import logging
from collections import defaultdict
from datetime import date, datetime
from typing import Callable, Dict, List, Optional, Sequence

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from callboard.models import CallLog, OrderLog, Reservation, Upsell, Complaint, MetricsDaily
from callboard.schemas.analytics import CallEvent, CallType, OrderFact, ReservationFact
from callboard.services.metrics_aggregator import matches_call_type

logger = logging.getLogger(__name__)


class CallRepository:

    def __init__(self, session_factory: Callable[[], Session], reason: str):
        self._session_factory = session_factory
        self.reason = reason
        logger.debug("Elevated call data access: %s", reason)

    # ── Stage 1: resolve the call set ──────────────────────────────

    def fetch_calls(self, location_id: int, start_utc: datetime, end_utc: datetime) -> List[CallEvent]:
        """Calls started in [start_utc, end_utc) for one location, oldest first."""
        with self._session_factory() as db:
            rows = db.query(
                CallLog.call_id,
                CallLog.location_id,
                CallLog.started_at_utc,
                CallLog.corrected_duration_seconds,
            ).filter(
                CallLog.location_id == location_id,
                CallLog.started_at_utc >= start_utc,
                CallLog.started_at_utc < end_utc,
            ).order_by(CallLog.started_at_utc).all()

        return [
            CallEvent(
                call_id=row.call_id,
                location_id=row.location_id,
                started_at_utc=row.started_at_utc,
                corrected_duration_seconds=row.corrected_duration_seconds,
            )
            for row in rows
        ]

    # ── Stage 2: related facts keyed by the call set ───────────────

    def fetch_orders(self, call_ids: Sequence[str]) -> List[OrderFact]:
        if not call_ids:
            return []
        with self._session_factory() as db:
            rows = db.query(OrderLog.call_id, OrderLog.total).filter(
                OrderLog.call_id.in_(call_ids)
            ).order_by(OrderLog.order_id).all()
        return [OrderFact(call_id=r.call_id, total=r.total) for r in rows]

    def fetch_reservations(self, call_ids: Sequence[str]) -> List[ReservationFact]:
        if not call_ids:
            return []
        with self._session_factory() as db:
            rows = db.query(Reservation.call_id, Reservation.guest_count).filter(
                Reservation.call_id.in_(call_ids)
            ).order_by(Reservation.reservation_id).all()
        return [ReservationFact(call_id=r.call_id, guest_count=r.guest_count) for r in rows]

    async def _optional(self, label: str, fn: Callable, *args) -> list:
        """Run a secondary lookup on a worker thread; a database error yields []."""
        try:
            return await asyncio.to_thread(fn, *args)
        except SQLAlchemyError as e:
            logger.warning("%s lookup failed, continuing without it: %s", label, e)
            return []

    async def attach_related(self, calls: List[CallEvent], call_type: CallType = CallType.ALL) -> List[CallEvent]:
        """
        Fetch orders and/or reservations for the calls concurrently, attach
        them, and keep only the calls matching the category filter.
        """
        call_ids = [c.call_id for c in calls]
        want_orders = call_type in (CallType.ALL, CallType.ORDERS)
        want_reservations = call_type in (CallType.ALL, CallType.RESERVATIONS)

        orders, reservations = await asyncio.gather(
            self._optional("Orders", self.fetch_orders, call_ids) if want_orders else _nothing(),
            self._optional("Reservations", self.fetch_reservations, call_ids) if want_reservations else _nothing(),
        )

        orders_by_call: Dict[str, List[OrderFact]] = defaultdict(list)
        for order in orders:
            orders_by_call[order.call_id].append(order)
        reservations_by_call: Dict[str, List[ReservationFact]] = defaultdict(list)
        for res in reservations:
            reservations_by_call[res.call_id].append(res)

        events = [
            call.model_copy(update={
                "orders": orders_by_call.get(call.call_id, []),
                "reservations": reservations_by_call.get(call.call_id, []),
            })
            for call in calls
        ]
        return [e for e in events if matches_call_type(e, call_type)]

    # ── Daily metrics view ─────────────────────────────────────────

    def fetch_daily_rows(self, location_id: int, start_date: date, end_date: date) -> List[MetricsDaily]:
        with self._session_factory() as db:
            return db.query(MetricsDaily).filter(
                MetricsDaily.location_id == location_id,
                MetricsDaily.date >= start_date,
                MetricsDaily.date <= end_date,
            ).order_by(MetricsDaily.date).all()

    def fetch_daily_rows_or_empty(self, location_id: int, start_date: date, end_date: date) -> List[MetricsDaily]:
        """For comparison data only; the page still renders without it."""
        try:
            return self.fetch_daily_rows(location_id, start_date, end_date)
        except SQLAlchemyError as e:
            logger.warning("Daily metrics lookup failed for location %s: %s", location_id, e)
            return []

    def total_call_time_seconds(self, location_id: int, start_utc: datetime, end_utc: datetime) -> int:
        try:
            with self._session_factory() as db:
                total = db.query(func.sum(CallLog.corrected_duration_seconds)).filter(
                    CallLog.location_id == location_id,
                    CallLog.started_at_utc >= start_utc,
                    CallLog.started_at_utc < end_utc,
                ).scalar()
        except SQLAlchemyError as e:
            logger.warning("Call time lookup failed for location %s: %s", location_id, e)
            return 0
        return int(total or 0)

    # ── Call log browsing ──────────────────────────────────────────

    def fetch_recent_calls(self, location_id: int, start_utc: datetime, end_utc: datetime, limit: int) -> List[CallLog]:
        with self._session_factory() as db:
            return db.query(CallLog).filter(
                CallLog.location_id == location_id,
                CallLog.started_at_utc >= start_utc,
                CallLog.started_at_utc < end_utc,
            ).order_by(CallLog.started_at_utc.desc()).limit(limit).all()

    def fetch_call(self, location_id: int, call_id: str) -> Optional[CallLog]:
        with self._session_factory() as db:
            return db.query(CallLog).filter(
                CallLog.call_id == call_id,
                CallLog.location_id == location_id,
            ).first()

    def _rows_for_call(self, model, call_id: str) -> list:
        with self._session_factory() as db:
            return db.query(model).filter(model.call_id == call_id).all()

    def _upsells_for_call(self, call_id: str) -> List[Upsell]:
        with self._session_factory() as db:
            return db.query(Upsell).join(OrderLog, Upsell.order_id == OrderLog.order_id).filter(
                OrderLog.call_id == call_id
            ).all()

    async def fetch_call_facts(self, call_id: str) -> Dict[str, list]:
        """Orders, reservations, upsells and complaints of one call, fetched concurrently."""
        orders, reservations, upsells, complaints = await asyncio.gather(
            asyncio.to_thread(self._rows_for_call, OrderLog, call_id),
            asyncio.to_thread(self._rows_for_call, Reservation, call_id),
            asyncio.to_thread(self._upsells_for_call, call_id),
            asyncio.to_thread(self._rows_for_call, Complaint, call_id),
        )
        return {
            "orders": orders,
            "reservations": reservations,
            "upsells": upsells,
            "complaints": complaints,
        }


async def _nothing() -> list:
    return []
