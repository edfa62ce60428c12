from __future__ import annotations

"""Error code taxonomy for scraper failures.

Codes appear in structured log lines and in the run summary so a failed
download can be explained without reading a traceback.
"""


class ErrorCode:
    NETWORK = "network_error"
    HTTP_4XX = "http_4xx"
    HTTP_403 = "http_403_forbidden"
    HTTP_404 = "http_404_not_found"
    HTTP_5XX = "http_5xx"
    RATE_LIMITED = "rate_limited"
    EMPTY_FILE = "empty_file"
    NAVIGATION = "navigation_error"
    SITE_STRUCTURE = "site_structure_changed"
    INTERNAL = "internal_error"


def classify_http_status(status: int | None) -> str:
    """Map an HTTP status to an :class:`ErrorCode` value."""

    if status is None:
        return ErrorCode.INTERNAL
    if status == 403:
        return ErrorCode.HTTP_403
    if status == 404:
        return ErrorCode.HTTP_404
    if status == 429:
        return ErrorCode.RATE_LIMITED
    if 400 <= status < 500:
        return ErrorCode.HTTP_4XX
    if status >= 500:
        return ErrorCode.HTTP_5XX
    return ErrorCode.INTERNAL


__all__ = ["ErrorCode", "classify_http_status"]
