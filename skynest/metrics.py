"""
Prometheus metrics for bookings, payments, access control and HTTP traffic.

This module defines all Prometheus metrics used throughout the application for
observability and monitoring. Metrics are exposed via the /metrics endpoint for
scraping by Prometheus.

Metric Types:
    - Counter: Cumulative metrics that only increase (e.g., bookings created)
    - Histogram: Observations bucketed by value (e.g., request latency)

Example:
    >>> from skynest.metrics import bookings_created
    >>> bookings_created.labels(branch_id="1").inc()
"""

from __future__ import annotations

from prometheus_client import Counter, Histogram

# =============================================================================
# Booking Metrics
# =============================================================================

bookings_created = Counter(
    "skynest_bookings_created_total",
    "Total number of bookings created",
    ["branch_id"],
)
"""
Counter for successfully created bookings.

Labels:
    branch_id: Branch owning the booked room
"""

booking_conflicts = Counter(
    "skynest_booking_conflicts_total",
    "Booking attempts rejected because the room was already taken",
)

booking_transitions = Counter(
    "skynest_booking_transitions_total",
    "Booking status transitions",
    ["status"],
)
"""
Counter for booking status changes.

Labels:
    status: New booking status (Confirmed, CheckedIn, CheckedOut, Cancelled, NoShow)
"""

# =============================================================================
# Payment Metrics
# =============================================================================

payments_recorded = Counter(
    "skynest_payments_recorded_total",
    "Total number of completed payments",
    ["method"],
)

payment_amount = Histogram(
    "skynest_payment_amount",
    "Distribution of completed payment amounts",
    buckets=(10, 50, 100, 250, 500, 1000, 2500, 5000, float("inf")),
)

# =============================================================================
# Access Control Metrics
# =============================================================================

auth_failures = Counter(
    "skynest_auth_failures_total",
    "Rejected logins and requests",
    ["reason"],
)
"""
Counter for access control failures.

Labels:
    reason: invalid_credentials, unauthenticated or forbidden
"""

# =============================================================================
# Operations Metrics
# =============================================================================

maintenance_transitions = Counter(
    "skynest_maintenance_transitions_total",
    "Maintenance log status transitions",
    ["status"],
)

service_request_transitions = Counter(
    "skynest_service_request_transitions_total",
    "Service request status transitions",
    ["status"],
)

# =============================================================================
# HTTP Metrics
# =============================================================================

http_request_duration = Histogram(
    "skynest_http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "path", "status_code"],
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, float("inf")),
)
