"""Prometheus metrics for monitoring"""
from prometheus_client import Counter, Histogram, Gauge, CollectorRegistry, generate_latest

registry = CollectorRegistry()

request_count = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status'],
    registry=registry
)

request_duration = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint'],
    registry=registry
)

rate_limit_exceeded = Counter(
    'rate_limit_exceeded_total',
    'Total rate limit exceeded events',
    ['user_id'],
    registry=registry
)

leads_imported = Counter(
    'leads_imported_total',
    'Leads inserted by bulk import',
    ['source'],
    registry=registry
)

lead_status_changes = Counter(
    'lead_status_changes_total',
    'Lead status updates by target status',
    ['status'],
    registry=registry
)

call_logs_reconciled = Counter(
    'call_logs_reconciled_total',
    'Call logs inserted from provider call reports',
    registry=registry
)

call_report_rows_skipped = Counter(
    'call_report_rows_skipped_total',
    'Call report rows not imported',
    ['reason'],
    registry=registry
)

telephony_report_failures = Counter(
    'telephony_report_failures_total',
    'Call report sync failures by stage',
    ['stage'],
    registry=registry
)

call_sync_duration = Histogram(
    'call_sync_duration_seconds',
    'Duration of a full call report sync',
    registry=registry
)

audit_logs_created = Counter(
    'audit_logs_created_total',
    'Total audit logs created',
    ['action'],
    registry=registry
)

redis_connected = Gauge(
    'redis_connected',
    'Redis connection status (1=connected, 0=disconnected)',
    registry=registry
)

db_connected = Gauge(
    'db_connected',
    'Database connection status (1=connected, 0=disconnected)',
    registry=registry
)


def get_metrics_text() -> str:
    """Generate Prometheus metrics in text format"""
    return generate_latest(registry).decode('utf-8')
