from __future__ import annotations


class AttackReportError(Exception):
    """Base class for every error raised by attackreport."""


class DecodeError(AttackReportError):
    """A single record could not be decoded from a source.

    Non-fatal: the collector publishes it on the error channel and keeps
    decoding the same source.
    """

    def __init__(self, message: str, source: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.source = source

    def __str__(self) -> str:
        if self.source is None:
            return self.message
        return f"source {self.source}: {self.message}"


class StreamAbortedError(DecodeError):
    """A source produced too many consecutive decode failures and was abandoned."""


class ChannelClosed(AttackReportError):
    pass


class ReportError(AttackReportError):
    """A reporter failed to render or write its output."""
