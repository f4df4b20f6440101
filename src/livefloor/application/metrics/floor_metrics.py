from __future__ import annotations

from datetime import datetime, timezone

from prometheus_client import Counter, Gauge, Histogram

from livefloor.domain.order.entities import Order, OrderStatus

ORDER_TRANSITION_TOTAL = Counter(
    "livefloor_order_transition_total",
    "Total number of confirmed order status transitions.",
    ["from", "to"],
)

ORDER_TRANSITION_REJECTED_TOTAL = Counter(
    "livefloor_order_transition_rejected_total",
    "Total number of order transitions rejected as invalid.",
    ["from", "to"],
)

GATEWAY_WRITE_FAILURES_TOTAL = Counter(
    "livefloor_gateway_write_failures_total",
    "Total number of status writes the gateway failed or rejected.",
    ["entity"],
)

ORDER_TIME_TO_SERVE_SECONDS = Histogram(
    "livefloor_order_time_to_serve_seconds",
    "Time between order creation and being marked served.",
)

TABLES_CLOSED_TOTAL = Counter(
    "livefloor_tables_closed_total",
    "Total number of table close-outs by outcome.",
    ["scope", "outcome"],
)

STORE_REFRESH_FAILURES_TOTAL = Counter(
    "livefloor_store_refresh_failures_total",
    "Total number of store refreshes that failed and kept the previous set.",
    ["store"],
)

CHANGE_EVENTS_TOTAL = Counter(
    "livefloor_change_events_total",
    "Total number of change events applied by operation.",
    ["entity", "operation"],
)

CHANGE_EVENTS_DROPPED_TOTAL = Counter(
    "livefloor_change_events_dropped_total",
    "Total number of malformed change events dropped.",
    ["entity"],
)

NOTIFICATIONS_TOTAL = Counter(
    "livefloor_notifications_total",
    "Total number of notifications fired by outcome.",
    ["entity", "outcome"],
)

LIVE_TABLES = Gauge(
    "livefloor_live_tables",
    "Number of live tables in the latest aggregation.",
    ["scope"],
)

DISPLAY_SESSIONS = Gauge(
    "livefloor_display_sessions",
    "Number of running display sessions.",
    ["display"],
)


def record_transition(from_status: OrderStatus, to_status: OrderStatus) -> None:
    ORDER_TRANSITION_TOTAL.labels(**{"from": from_status.value, "to": to_status.value}).inc()


def record_transition_rejected(from_status: OrderStatus, to_status: OrderStatus) -> None:
    ORDER_TRANSITION_REJECTED_TOTAL.labels(
        **{"from": from_status.value, "to": to_status.value}
    ).inc()


def record_gateway_write_failure(entity: str) -> None:
    GATEWAY_WRITE_FAILURES_TOTAL.labels(entity=entity).inc()


def record_time_to_serve(order: Order, now: datetime | None = None) -> None:
    current = now or datetime.now(timezone.utc)
    ORDER_TIME_TO_SERVE_SECONDS.observe(max((current - order.created_at).total_seconds(), 0.0))


def record_table_closed(scope: str, fully_closed: bool) -> None:
    outcome = "closed" if fully_closed else "partial"
    TABLES_CLOSED_TOTAL.labels(scope=scope, outcome=outcome).inc()


def record_refresh_failure(store: str) -> None:
    STORE_REFRESH_FAILURES_TOTAL.labels(store=store).inc()


def record_change_event(entity: str, operation: str) -> None:
    CHANGE_EVENTS_TOTAL.labels(entity=entity, operation=operation).inc()


def record_change_event_dropped(entity: str) -> None:
    CHANGE_EVENTS_DROPPED_TOTAL.labels(entity=entity).inc()


def record_notification(entity: str, delivered: bool) -> None:
    NOTIFICATIONS_TOTAL.labels(entity=entity, outcome="delivered" if delivered else "failed").inc()


def record_live_tables(scope: str, count: int) -> None:
    LIVE_TABLES.labels(scope=scope).set(count)


def session_started(display: str) -> None:
    DISPLAY_SESSIONS.labels(display=display).inc()


def session_stopped(display: str) -> None:
    DISPLAY_SESSIONS.labels(display=display).dec()
