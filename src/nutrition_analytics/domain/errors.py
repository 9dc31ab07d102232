"""Domain error taxonomy."""


class InvalidQuantity(ValueError):
    """Raised for a non-positive or non-finite portion or scale factor."""


class IncompleteGoalInput(ValueError):
    """Raised when goal inputs are missing or out of range."""

    def __init__(self, fields: list[str]) -> None:
        self.fields = fields
        super().__init__(f"Missing or invalid goal input: {', '.join(fields)}")


class EntryNotFound(LookupError):
    """Raised when a meal entry id is not present in a day log."""

    def __init__(self, entry_id: str) -> None:
        self.entry_id = entry_id
        super().__init__(f"Meal entry not found: {entry_id}")


class StoreUnavailable(RuntimeError):
    """Raised when the date-keyed store cannot be reached."""
