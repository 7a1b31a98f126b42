from __future__ import annotations


class AppError(Exception):
    """Operational error: message and status code are safe to show to clients."""

    def __init__(self, message: str, status_code: int = 500, *, details: list[dict] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details
        self.is_operational = True


def create_error(message: str, status_code: int = 500) -> AppError:
    return AppError(message, status_code)
