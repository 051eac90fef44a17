"""Core types shared by every layer: results, errors, config, patterns."""

from .errors import ErrorCode, PublishError, report
from .result import Err, Ok, Result, is_err, is_ok

__all__ = [
    # errors
    "ErrorCode",
    "PublishError",
    "report",
    # result
    "Err",
    "Ok",
    "Result",
    "is_err",
    "is_ok",
]
