"""
Errors raised by the marketplace API client.
"""


class ClientAPIError(Exception):
    """A non-2xx response from the API, carrying its status and message."""

    def __init__(self, status_code: int, message: str):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message
