"""
Centralized logging module for the application.

Provides a pre-configured Loguru logger instance for use throughout
the application.  This module avoids circular dependencies by:

- Importing the logging *configuration* from logging_config.py
- Providing the logger *instance* here.

Other modules import the logger with ``from vtype.core.logging import logger``.
"""

from loguru import logger
from vtype.core.logging_config import setup_logging

# Initialize logging (call the setup function)
setup_logging()

__all__ = ["logger"]
