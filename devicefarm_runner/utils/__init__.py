"""
Utility modules for the Device Farm runner.

This package contains:
    - logger: Structured logging with structlog
    - security: Credential masking and session-name generation
"""

from devicefarm_runner.utils.logger import get_logger, setup_logging
from devicefarm_runner.utils.security import (
    SecureString,
    generate_session_suffix,
    mask_sensitive,
)

__all__ = [
    "get_logger",
    "setup_logging",
    "SecureString",
    "generate_session_suffix",
    "mask_sensitive",
]
