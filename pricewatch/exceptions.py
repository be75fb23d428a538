"""
PriceWatch Exceptions
Error taxonomy shared by services and the HTTP layer
"""
from typing import Optional


class PriceWatchError(Exception):
    """Base class for errors raised by PriceWatch services"""
    status_code = 500


class FetchError(PriceWatchError):
    """Product page could not be retrieved"""

    def __init__(self, message: str, url: Optional[str] = None, status: Optional[int] = None):
        super().__init__(message)
        self.url = url
        self.status = status


class TimeoutFetchError(FetchError):
    pass


class NotFoundError(PriceWatchError):
    status_code = 404


class InputValidationError(PriceWatchError):
    status_code = 400
