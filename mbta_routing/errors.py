import json


class MBTAError(Exception):
    """Base class for every error raised by mbta_routing."""


class APIError(MBTAError):
    """
    A non-2xx response returned by the MBTA API.
    """

    def __init__(self, status_code, status=None, code=None, title=None, detail=None, source=None):
        self.status_code = status_code
        self.status = status or str(status_code)
        self.code = code
        self.title = title or ""
        self.detail = detail or ""
        self.source = source or {}
        super().__init__(str(self))

    def __str__(self):
        return f"MBTA API Error ({self.status}): {self.title} - {self.detail}"


class NotFoundError(APIError):
    pass


class UnauthorizedError(APIError):
    pass


class RateLimitError(APIError):
    def __init__(self, *args, retry_after=60, **kwargs):
        self.retry_after = retry_after
        super().__init__(*args, **kwargs)

    def __str__(self):
        return f"MBTA API Rate Limit Exceeded: {self.detail}. Retry after {self.retry_after} seconds"


class NetworkError(MBTAError):
    """Transport-level failure. The original exception is kept on `cause`."""

    def __init__(self, message, cause=None):
        self.cause = cause
        super().__init__(message)


class RequestTimeoutError(NetworkError):
    def __init__(self, message, timeout=None, cause=None):
        self.timeout = timeout
        super().__init__(message, cause=cause)


class RequestCancelledError(NetworkError):
    pass


class NoTripFoundError(MBTAError):
    pass


class InvalidInputError(MBTAError, ValueError):
    pass


_STATUS_TITLES = {
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    429: "Too Many Requests",
    500: "Internal Server Error",
    503: "Service Unavailable",
}


def _error_class(status_code):
    if status_code == 404:
        return NotFoundError
    if status_code in (401, 403):
        return UnauthorizedError
    if status_code == 429:
        return RateLimitError
    return APIError


def _retry_after(headers):
    try:
        return int((headers or {}).get("Retry-After", 60))
    except (TypeError, ValueError):
        return 60


def parse_api_error(status_code, body, headers=None):
    """
    Builds the APIError subclass matching an HTTP error response.

    The MBTA API reports errors as a JSON:API `errors` array; only the first
    entry is used. Bodies that are not JSON, or carry no errors, produce a
    generic error whose detail is the raw body.
    """
    error_class = _error_class(status_code)
    kwargs = {}
    if error_class is RateLimitError:
        kwargs["retry_after"] = _retry_after(headers)

    try:
        payload = json.loads(body) if body else {}
        errors = payload.get("errors") or []
    except (ValueError, AttributeError):
        errors = []

    if not isinstance(errors, list) or not errors or not isinstance(errors[0], dict):
        return error_class(
            status_code,
            title=_STATUS_TITLES.get(status_code, "HTTP Error"),
            detail=body,
            **kwargs
        )

    first = errors[0]
    return error_class(
        status_code,
        status=first.get("status"),
        code=first.get("code"),
        title=first.get("title"),
        detail=first.get("detail"),
        source=first.get("source"),
        **kwargs
    )
