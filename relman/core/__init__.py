"""Core types: results, exit codes, configuration and store detection."""

from .config import Config, ConfigError, load_config, load_store_config
from .errors import ErrorCode
from .result import Err, Ok, Result, is_err, is_ok
from .store import StoreError, detect_store_root

__all__ = [
    # config
    "Config",
    "ConfigError",
    "load_config",
    "load_store_config",
    # errors
    "ErrorCode",
    # result
    "Err",
    "Ok",
    "Result",
    "is_err",
    "is_ok",
    # store
    "StoreError",
    "detect_store_root",
]
