"""Utility functions and exceptions."""

from .exceptions import (
    AllocationError,
    ConfigurationError,
    InputFileError,
    ResourceNotFoundError,
    SiteInitError,
    TopologyError,
    ValidationError,
    XnameError,
)

__all__ = [
    "SiteInitError",
    "ValidationError",
    "InputFileError",
    "XnameError",
    "ConfigurationError",
    "ResourceNotFoundError",
    "AllocationError",
    "TopologyError",
]
