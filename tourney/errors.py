class TourneyError(Exception):
    """Base exception for team, group and match operations."""

    pass


class NotFoundError(TourneyError):
    """Raised when a referenced record does not exist where it must."""

    def __init__(self, kind: str, record_id: str, detail: str = ""):
        self.kind = kind
        self.record_id = record_id
        message = f"{kind} with ID {record_id} does not exist."
        if detail:
            message = f"{message} {detail}"
        super().__init__(message)


class ValidationError(TourneyError):
    """Raised for malformed input or a stored document of the wrong shape."""

    pass


class StoreError(TourneyError):
    """Raised when the underlying document store fails."""

    pass


class TransactionConflict(StoreError):
    """A compare-and-swap lost against a concurrent writer."""

    pass
