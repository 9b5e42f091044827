class DatabaseError(Exception):
    """Base exception for repository lookups."""


class PolicyNotFoundError(DatabaseError):
    """Raised when a policy number has no matching policy row."""
