# fitcoach/adherence/aggregator.py
"""
Adherence Aggregator.

Rebuilds the rolling adherence signal from the deviation log, the newest
check-in and the adjustment marker on every call. Nothing here is cached or
written: for fixed rows and a fixed ``as_of`` the result is the same.
"""
import logging
from datetime import datetime, timedelta
from typing import Iterable, Optional

from flask import current_app

from fitcoach.adherence.constraints_store import get_constraints
from fitcoach.adherence.enums import (
    CHECKIN_AXIS_TYPES, AdherenceLevel, DeviationReason, DeviationType, PlanStatus, TriggerSource,
)
from fitcoach.adherence.state import AdherenceState, Constraints, LastAdjustment, WindowEvent
from fitcoach.extensions import db
from fitcoach.models import AdjustmentMarker, DeviationEvent, PlanRegeneration, WeeklyCheckin
from fitcoach.utils import clock

logger = logging.getLogger(__name__)


def _settings():
    cfg = current_app.config
    return (
        timedelta(days=int(cfg.get("ADHERENCE_WINDOW_DAYS", 7))),
        timedelta(hours=int(cfg.get("RECENT_ADJUSTMENT_HOURS", 24))),
        float(cfg.get("PARTIAL_RATING_WEIGHT", 0.5)),
        bool(cfg.get("REGENERATION_RESETS_WINDOW", False)),
    )


def classify(count: int, threshold: int, last_adjustment: Optional[LastAdjustment],
             as_of: datetime, recent: timedelta = timedelta(hours=24)) -> PlanStatus:
    """First match wins: recent adjustment, then threshold, then any deviation."""
    if last_adjustment and as_of - recent <= last_adjustment.created_at < as_of:
        return PlanStatus.RECENTLY_ADJUSTED
    if count >= threshold:
        return PlanStatus.NEEDS_REVIEW
    if count > 0:
        return PlanStatus.MINOR_DEVIATIONS
    return PlanStatus.ON_TRACK


def checkin_events(checkin: WeeklyCheckin):
    """Synthetic deviations for every axis rated ``no``, plus the axes rated ``partial``."""
    events, partial = [], []
    reason = DeviationReason(checkin.primary_reason) if checkin.primary_reason else DeviationReason.OTHER
    for axis, rating in checkin.ratings().items():
        level = AdherenceLevel(rating)
        if level is AdherenceLevel.NO:
            events.append(WindowEvent(
                deviation_type=CHECKIN_AXIS_TYPES[axis],
                reason=reason,
                created_at=checkin.created_at,
                source="checkin",
            ))
        elif level is AdherenceLevel.PARTIAL:
            partial.append(axis)
    return events, partial


def build_state(user_id, as_of: datetime, constraints: Constraints,
                deviations: Iterable[DeviationEvent], checkin: Optional[WeeklyCheckin],
                last_adjustment: Optional[LastAdjustment], counting_start: datetime = None,
                window: timedelta = timedelta(days=7), recent: timedelta = timedelta(hours=24),
                partial_weight: float = 0.5) -> AdherenceState:
    window_start = as_of - window
    counting_start = max(counting_start or window_start, window_start)

    events = [
        WindowEvent(
            deviation_type=DeviationType(d.deviation_type),
            reason=DeviationReason(d.reason),
            created_at=d.created_at,
            impact_budget=d.impact_budget,
        )
        for d in deviations
        if counting_start <= d.created_at < as_of
    ]

    partial_axes = []
    budget_rating = None
    if checkin is not None and counting_start <= checkin.created_at < as_of:
        synthetic, partial_axes = checkin_events(checkin)
        events.extend(synthetic)
        budget_rating = checkin.budget_adherence
    events.sort(key=lambda e: e.created_at)

    threshold = max(1, int(constraints.simplify_after_deviations))
    count = len(events)

    return AdherenceState(
        user_id=user_id,
        as_of=as_of,
        window_start=window_start,
        threshold=threshold,
        status=classify(count, threshold, last_adjustment, as_of, recent),
        deviation_count=count,
        weighted_severity=count + partial_weight * len(partial_axes),
        events=tuple(events),
        partial_axes=tuple(partial_axes),
        checkin_budget_rating=budget_rating,
        last_adjustment=last_adjustment,
        adjusted_in_window=bool(last_adjustment and last_adjustment.created_at >= window_start),
    )


def last_adjustment_for(user_id) -> Optional[LastAdjustment]:
    marker = db.session.get(AdjustmentMarker, user_id)
    if marker is None or marker.last_adjustment is None:
        return None
    row = marker.last_adjustment
    return LastAdjustment(
        id=row.id,
        adjustment_type=row.adjustment_type,
        rule=row.rule_applied,
        reason=row.reason,
        created_at=row.created_at,
        triggered_by=row.triggered_by,
    )


def _counting_start(user_id, window_start, as_of, resets):
    if not resets:
        return window_start
    latest = (
        PlanRegeneration.query
        .filter(PlanRegeneration.user_id == user_id,
                PlanRegeneration.triggered_by == TriggerSource.MANUAL.value,
                PlanRegeneration.created_at < as_of)
        .order_by(PlanRegeneration.created_at.desc())
        .first()
    )
    if latest and latest.created_at > window_start:
        return latest.created_at
    return window_start


def aggregate(user_id, as_of: datetime = None, constraints: Constraints = None) -> AdherenceState:
    as_of = as_of or clock.utcnow()
    constraints = constraints or get_constraints(user_id)
    window, recent, partial_weight, resets = _settings()
    window_start = as_of - window
    counting_start = _counting_start(user_id, window_start, as_of, resets)

    deviations = (
        DeviationEvent.query
        .filter(DeviationEvent.user_id == user_id,
                DeviationEvent.created_at >= counting_start,
                DeviationEvent.created_at < as_of)
        .order_by(DeviationEvent.created_at.asc())
        .all()
    )
    checkin = (
        WeeklyCheckin.query
        .filter(WeeklyCheckin.user_id == user_id,
                WeeklyCheckin.created_at >= counting_start,
                WeeklyCheckin.created_at < as_of)
        .order_by(WeeklyCheckin.created_at.desc())
        .first()
    )

    state = build_state(
        user_id, as_of, constraints, deviations, checkin, last_adjustment_for(user_id),
        counting_start=counting_start, window=window, recent=recent, partial_weight=partial_weight,
    )
    logger.debug("Adherence user_id=%s status=%s count=%s threshold=%s",
                 user_id, state.status.value, state.deviation_count, state.threshold)
    return state
