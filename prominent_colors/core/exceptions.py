"""
Exception raised by the prominent colors pipeline stages.
"""
from prominent_colors.schemas.prominent_colors import AppError, ErrorType


class ProminentColorsError(Exception):
    """
    A pipeline failure tagged with the error type reported to the client.
    """

    def __init__(self, message: str, error_type: ErrorType = ErrorType.OTHER):
        super().__init__(message)
        self.message = message
        self.error_type = error_type

    def to_app_error(self) -> AppError:
        return AppError(msg=self.message, type=self.error_type)
