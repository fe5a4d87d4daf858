"""
Utilities Module

This module provides helper functions for the HackMD client:
- Logging setup
- HTTP header value checks
- Rate limit header parsing
- Path validation
"""

import logging
import re
from typing import Mapping, Optional

# Control characters other than horizontal tab, plus DEL
_INVALID_HEADER_CHARS = re.compile(r'[\x00-\x08\x0a-\x1f\x7f]')
_BAD_PERCENT_ESCAPE = re.compile(r'%(?![0-9A-Fa-f]{2})')


def setup_logging(level: int = logging.INFO, log_file: Optional[str] = None):
    """
    Configure logging for an application using the client.

    The library itself never installs handlers; call this from scripts.

    Args:
        level (int): Root logging level
        log_file (Optional[str]): Also write records to this file

    Returns:
        Logger: The client's logger
    """
    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers
    )
    return logging.getLogger('hackmd_api')


def is_valid_header_value(value: str) -> bool:
    """Check that a string can be sent verbatim as an HTTP header value."""
    return _INVALID_HEADER_CHARS.search(value) is None


def has_invalid_percent_encoding(path: str) -> bool:
    """True when a '%' in the path is not followed by two hex digits."""
    return _BAD_PERCENT_ESCAPE.search(path) is not None


def parse_int_header(headers: Mapping[str, str], name: str) -> Optional[int]:
    """
    Read a header as a non-negative integer.

    Args:
        headers: Response headers (case-insensitive mapping)
        name (str): Header name

    Returns:
        Optional[int]: Parsed value, or None when missing or unparseable
    """
    value = headers.get(name)
    if value is None:
        return None
    try:
        parsed = int(value.strip())
    except ValueError:
        return None
    return parsed if parsed >= 0 else None
