"""Utility modules for bastionctl.

This package provides common utilities for:
- Running external executables attached to the terminal
- Probing and validating local TCP ports
- Validating EC2 instance IDs
"""

from bastionctl.utils.ports import find_available_port, is_port_available, parse_port, validate_port
from bastionctl.utils.process import ProcessResult, ProcessRunner
from bastionctl.utils.validation import is_valid_instance_id, looks_like_instance_id

__all__ = [
    "ProcessResult",
    "ProcessRunner",
    "find_available_port",
    "is_port_available",
    "is_valid_instance_id",
    "looks_like_instance_id",
    "parse_port",
    "validate_port",
]
