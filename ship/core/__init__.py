"""Core domain types and logic."""

from .config import Config, ConfigError, load_config
from .credentials import Credentials, CredentialStore, load_credentials
from .errors import ErrorCode
from .project import Project, ProjectError, detect_project
from .result import Err, Ok, Result, is_err, is_ok

__all__ = [
    # config
    "Config",
    "ConfigError",
    "load_config",
    # credentials
    "Credentials",
    "CredentialStore",
    "load_credentials",
    # errors
    "ErrorCode",
    # project
    "Project",
    "ProjectError",
    "detect_project",
    # result
    "Err",
    "Ok",
    "Result",
    "is_err",
    "is_ok",
]
