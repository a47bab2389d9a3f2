"""
Custom exceptions for AlgoDeck.
"""


class AlgoDeckError(Exception):
    """Base exception for all AlgoDeck errors."""
    pass


class ValidationFailedError(AlgoDeckError):
    """Raised when input is rejected before anything is written."""
    pass


class BackupValidationError(ValidationFailedError):
    """Raised when a backup payload is missing required arrays or fields."""
    pass


class NotFoundError(AlgoDeckError):
    """Raised when a requested record does not exist."""
    pass


class ItemNotFoundError(NotFoundError):
    def __init__(self, item_id: int) -> None:
        super().__init__(f"Item {item_id} not found")
        self.item_id = item_id


class SolutionNotFoundError(NotFoundError):
    def __init__(self, solution_id: int) -> None:
        super().__init__(f"Solution {solution_id} not found")
        self.solution_id = solution_id


class NotebookNotFoundError(NotFoundError):
    def __init__(self, notebook_id: int) -> None:
        super().__init__(f"Notebook {notebook_id} not found")
        self.notebook_id = notebook_id


class SessionStateError(AlgoDeckError):
    """Raised when a review session operation is not valid in its current state."""
    pass
