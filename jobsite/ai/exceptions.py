"""Exceptions raised by the daily log parser client."""


class LogParserError(Exception):
    """Base exception for daily log parsing."""
    pass


class LogEntryTooShortError(LogParserError):
    """Entry is below the minimum length worth sending to the model."""
    pass


class LogParserNotConfiguredError(LogParserError):
    """No API key configured for the parsing service."""
    pass


class LogParseError(LogParserError):
    """Upstream call failed or returned something that is not the expected JSON."""
    pass
