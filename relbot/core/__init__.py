"""Core types: results, exit codes, settings and workspaces."""

from .config import ConfigError, Credentials, Settings, Trigger, load_settings
from .errors import ErrorCode
from .result import Err, Ok, Result

__all__ = [
    # config
    "ConfigError",
    "Credentials",
    "Settings",
    "Trigger",
    "load_settings",
    # errors
    "ErrorCode",
    # result
    "Err",
    "Ok",
    "Result",
]
