from __future__ import annotations

import re
from prometheus_client import Counter, Histogram

# /api/v1/ghe/* is the same surface as /ghe/*; both share one label set.
_VERSIONED_GHE = re.compile(r"^/api/v\d+(?=/ghe(/|$))")
_HEX_SEGMENT = re.compile(r"/[0-9a-fA-F]{16,}(?=/|$)")
_INT_SEGMENT = re.compile(r"/\d+(?=/|$)")


def normalize_path(path: str) -> str:
    """Metrics label for a request path: mounts folded, ids collapsed."""
    p = path or "/"
    p = _VERSIONED_GHE.sub("", p)
    p = _HEX_SEGMENT.sub("/:hex", p)
    p = _INT_SEGMENT.sub("/:id", p)
    if p.startswith("/ghe/") and p.count("/") > 2:
        # routes are one level deep; anything longer is an unmatched path
        p = "/ghe/:unmatched"
    return p


HTTP_REQUESTS_TOTAL = Counter(
    "mediator_http_requests_total",
    "HTTP requests handled by the mediator",
    ["method", "path", "status"],
)

HTTP_REQUEST_DURATION_SECONDS = Histogram(
    "mediator_http_request_duration_seconds",
    "Mediator request duration in seconds",
    ["method", "path"],
)
