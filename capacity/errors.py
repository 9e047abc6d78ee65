"""
Error kinds raised by the counter store and the registration service.

Each CapacityError carries the HTTP status it is surfaced as, so the
server middleware can translate it without knowing the concrete type.
"""


class CapacityError(Exception):
    """Base class for request-level failures."""

    status = 500
    # Message shown to HTTP clients instead of str(exc), when set
    public_message = None


class UnknownProgram(CapacityError):
    """The program identifier is not in the catalog."""

    status = 404

    def __init__(self, program_id: str):
        self.program_id = program_id
        super().__init__(f"Program not found: {program_id}")


class Unauthorized(CapacityError):
    """The admin credential is missing or does not match."""

    status = 403

    def __init__(self):
        super().__init__("Forbidden")


class InvalidValue(CapacityError):
    """A count supplied by the caller is not a non-negative integer."""

    status = 400

    def __init__(self, value: object):
        self.value = value
        super().__init__(f"Invalid count: {value!r} (expected a non-negative integer)")


class PersistenceFailure(CapacityError):
    """Reading or writing the durable counter state failed."""

    status = 500
    public_message = "Could not persist counters"


class ConfigError(ValueError):
    """Invalid catalog or settings at startup."""
