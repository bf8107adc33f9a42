from .log_parser import LogParserClient, get_log_parser
from .prompts import LogPromptTemplates
from .exceptions import (
    LogParserError,
    LogEntryTooShortError,
    LogParserNotConfiguredError,
    LogParseError,
)

__all__ = [
    "LogParserClient",
    "get_log_parser",
    "LogPromptTemplates",
    "LogParserError",
    "LogEntryTooShortError",
    "LogParserNotConfiguredError",
    "LogParseError",
]
