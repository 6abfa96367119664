"""Error taxonomy for the acquisition and rendering pipeline.

Every error here is non-fatal: it is caught at the boundary where it
occurs and degrades the pipeline (empty result, excluded event or
retained snapshot) instead of propagating to the scheduler.
"""


class CalendarError(Exception):
    """Base class for activity calendar errors."""


class SourceUnavailable(CalendarError):
    """Raised when a source cannot be reached (network, timeout, browser)."""

    def __init__(self, source: str, reason: str):
        super().__init__(f"Source '{source}' unavailable: {reason}")
        self.source = source
        self.reason = reason


class MalformedResponse(CalendarError):
    """Raised when a source returns data that doesn't match the expected shape."""

    def __init__(self, source: str, reason: str):
        super().__init__(f"Source '{source}' returned malformed data: {reason}")
        self.source = source
        self.reason = reason


class EmptyResult(CalendarError):
    """Raised when a source yields no valid records after filtering."""

    def __init__(self, source: str, fetched: int = 0):
        super().__init__(
            f"Source '{source}' yielded no valid records ({fetched} fetched)"
        )
        self.source = source
        self.fetched = fetched


class ParseFailure(CalendarError):
    """Raised when an event's time text is not recognized."""

    def __init__(self, text: str):
        super().__init__(f"Unrecognized time text: {text!r}")
        self.text = text


class RenderFailure(CalendarError):
    """Raised when the renderer fails to produce an artifact."""

    def __init__(self, locale: str, reason: str):
        super().__init__(f"Rendering failed for locale '{locale}': {reason}")
        self.locale = locale
        self.reason = reason
