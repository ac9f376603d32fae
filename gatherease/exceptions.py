"""Exception types shared by services and the HTTP layer."""

from typing import Optional


class DispatchError(Exception):
    """Base class for failures inside a dispatch pass."""


class DataUnavailable(DispatchError):
    """The backing store could not be queried."""


class ChannelDeliveryFailure(DispatchError):
    """An external channel (email, WhatsApp, SMS, push) did not accept a message."""

    def __init__(self, channel: str, message: str):
        super().__init__(f"{channel}: {message}")
        self.channel = channel


class ConfigurationError(DispatchError):
    """An entity is missing the timing fields its mode requires."""


class HTTPDomainException(Exception):
    status_code = 400

    def __init__(self, detail: Optional[str] = None):
        super().__init__(detail)
        self.detail = detail or self.__class__.__name__


class NotFoundException(HTTPDomainException):
    status_code = 404


class ValidationException(HTTPDomainException):
    status_code = 400


class ForbiddenException(HTTPDomainException):
    status_code = 403
