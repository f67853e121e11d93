"""Application metrics using the Prometheus client library.

One inventory of everything the service measures.  Other modules import
the metric they own and increment/observe it at the point of action.

ACCESS DECISIONS
-----------------
``access_decisions_total`` counts every outcome of the context resolver
and the role authorizer, labelled by outcome (allow|deny) and error kind.
A sudden rise of ``deny/access_denied`` against a flat request rate is the
signature of someone probing organization ids; a rise of
``deny/forbidden`` usually means a role change went out that users have
not noticed yet.  Labels carry kinds only, never ids: organization ids
would explode label cardinality and would leak tenant names into dashboards.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# ---------------------------------------------------------------------------
# HTTP metrics (populated by the MetricsMiddleware)
# ---------------------------------------------------------------------------

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests by method, endpoint, and status code",
    ["method", "endpoint", "status_code"],
)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

ACTIVE_REQUESTS = Gauge(
    "http_active_requests",
    "Number of HTTP requests currently being processed",
)

# ---------------------------------------------------------------------------
# Access-control metrics
# ---------------------------------------------------------------------------

ACCESS_DECISIONS = Counter(
    "access_decisions_total",
    "Organization context and role authorization decisions",
    ["outcome", "kind"],  # outcome: allow|deny; kind: error kind or "ok"
)

WORKSPACE_SWITCHES = Counter(
    "workspace_switches_total",
    "Active-organization switch attempts by result",
    ["result"],  # "switched" or "rejected"
)

RATE_LIMIT_HITS = Counter(
    "rate_limit_hits_total",
    "Requests rejected by rate limiting (429s)",
    ["key_type"],  # "user" or "ip"
)
