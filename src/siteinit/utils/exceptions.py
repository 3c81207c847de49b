"""Custom exceptions for siteinit.

Exception Hierarchy:
-------------------
SiteInitError (base)
├── ValidationError
│   ├── InputFileError          # Malformed row in a CSV/JSON/YAML input file
│   ├── XnameError              # Malformed xname or xname of the wrong type
│   └── ConfigurationError      # Application node / cabinet configuration problems
├── ResourceNotFoundError       # Named subnet, reservation, switch or row missing
├── AllocationError             # No free block, overlapping CIDR, exhausted subnet
└── TopologyError               # Fatal inconsistency while generating SLS hardware

Usage Guidelines:
----------------
1. Configuration problems are raised before any generation begins:
   - ConfigurationError: duplicate alias, duplicate prefix, unresolved subrole
   - XnameError: invalid xname used as a key or switch identifier

2. Allocation failures are returned to the caller as AllocationError. Callers
   that treat a subnet as mandatory (bootstrap_dhcp, network_hardware) let it
   propagate; others may log it and continue.

3. TopologyError aborts SLS generation. It means the input cannot be trusted
   (a malformed U number, a missing parent row, a switch that is not in the
   switch metadata).

4. Use SiteInitError as catch-all for siteinit-specific errors.
"""


class SiteInitError(Exception):
    """Root of every error siteinit raises on purpose."""


class ValidationError(SiteInitError):
    """
    An input or configuration value was rejected.

    Attributes:
        line_number: Input file line the problem was found on, if known.
        original_error: The parser or pydantic error being wrapped, if any.
    """

    def __init__(
        self, message: str, line_number: int | None = None, original_error: Exception | None = None
    ) -> None:
        super().__init__(message)
        self.line_number = line_number
        self.original_error = original_error


class InputFileError(ValidationError):
    """Raised when an input file row cannot be parsed."""

    def __str__(self) -> str:
        message = self.args[0] if self.args else "Input file error"
        return f"Line {self.line_number}: {message}" if self.line_number else str(message)


class XnameError(ValidationError):
    """Raised when an xname is malformed or of an unexpected type."""

    def __init__(self, message: str, xname: str | None = None) -> None:
        super().__init__(message)
        self.xname = xname


class ConfigurationError(ValidationError):
    """Cabinet or application node configuration is inconsistent."""


class ResourceNotFoundError(SiteInitError):
    """A subnet, reservation or row looked up by name does not exist."""

    def __init__(self, resource_type: str, identifier: str) -> None:
        super().__init__(f"{resource_type} not found: {identifier}")
        self.resource_type = resource_type
        self.identifier = identifier


class AllocationError(SiteInitError):
    """No room for a subnet or address, or a requested CIDR clashes with one in use."""


class TopologyError(SiteInitError):
    """Raised when SLS hardware generation hits an unrecoverable input problem."""

    def __init__(self, message: str, source: str | None = None) -> None:
        """source is the HMN row source (or xname) being processed, if any."""
        super().__init__(message)
        self.source = source
