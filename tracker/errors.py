"""Error kinds returned by the tracker core.

Store operations hand these back inside ``Left`` values; they are exceptions
only so that parsing and persistence code can raise them internally.
"""


class TrackerError(Exception):
    pass


class ValidationError(TrackerError):
    def __init__(self, errors: dict[str, str]):
        self.errors = dict(errors)
        super().__init__(", ".join(self.errors.values()))

    def __eq__(self, other) -> bool:
        return isinstance(other, ValidationError) and self.errors == other.errors


class NotFoundError(TrackerError):
    def __init__(self, id: str, kind: str = "Transaction"):
        self.id = id
        self.kind = kind
        super().__init__(f"{kind} {id} not found")


class PersistenceError(TrackerError):
    def __init__(self, key: str, reason: str = "write rejected"):
        self.key = key
        self.reason = reason
        super().__init__(f"Failed to persist {key}: {reason}")


class FormatError(TrackerError):
    pass


# Raised by persistence backends when a write would exceed their capacity
class QuotaExceededError(TrackerError):
    pass
