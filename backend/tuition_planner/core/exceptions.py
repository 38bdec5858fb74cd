class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict | list | None = None):
        self.message = message
        self.status_code = status_code
        self.details = details if details is not None else {}
        super().__init__(self.message)

class PlannerError(AppError):
    """Raised when a planning request cannot be served (bad payload, empty roster)."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, status_code=400, details=details)

class SlotShortageError(AppError):
    """Raised when a plan references more slots per day than the teacher's calendar has."""
    def __init__(self, missing: list[str]):
        super().__init__(
            "Cannot apply plan because your recurring calendar has fewer slots than requested. "
            "Create missing slots first.",
            status_code=409,
            details=missing,
        )
