"""Pre-flight validation of site inputs."""

from .validator import InputValidator, ValidationIssue, ValidationReport, validate_input_files

__all__ = [
    "InputValidator",
    "ValidationIssue",
    "ValidationReport",
    "validate_input_files",
]
