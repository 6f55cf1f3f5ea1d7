"""
Error taxonomy for CSV seeding.

Only SourceUnavailable aborts a run. Insert errors are raised by a
destination, caught per batch by the insert sink and recorded on the result.
"""


class SeederError(Exception):
    """Base class for all seeder errors."""


class ConfigurationError(SeederError, ValueError):
    """Seed configuration is statically invalid (bad chunk size, delimiter, offset)."""


class SourceUnavailable(SeederError, FileNotFoundError):
    """CSV file is missing or unreadable at open time."""

    def __init__(self, path, reason: str = "does not exist or is not readable"):
        self.path = str(path)
        self.reason = reason
        super().__init__(f"CSV {self.path} {reason}.")


class InsertError(SeederError):
    """A storage-layer failure while writing one batch."""

    kind = "storage"


class SchemaMismatch(InsertError):
    """A record field does not exist on the destination table."""

    kind = "schema_mismatch"


class ConstraintViolation(InsertError):
    """The destination rejected a batch because of a constraint (unique, not null, ...)."""

    kind = "constraint_violation"
