"""
Domain errors raised by the service layer.

Each carries the user-facing message the API returns as {"error": message}.
Messages stay generic; internals are only ever logged.
"""


class LinkError(Exception):
    """Base class for link domain errors."""

    message = "Something went wrong"

    def __init__(self, message: str = None):
        self.message = message or self.message
        super().__init__(self.message)


class DuplicateShortCodeError(LinkError):
    message = "This short code is already taken"


class LinkNotFoundError(LinkError):
    message = "Link not found"
