from abc import ABC


class BaseCustomException(Exception, ABC):
    """
    Base class for all custom exceptions.
    """

    def __init__(self, message: str | None = None):
        self.message = message or self.get_default_message()
        super().__init__(self.message)

    def get_default_message(self) -> str:
        """
        Return default error message.

        Returns
        -------
        str
            Default error message
        """
        return "error.unknown"

    def get_status_code(self) -> int:
        """
        Return HTTP status code for exception.

        Returns
        -------
        int
            HTTP status code
        """
        return 500


class BadRequestException(BaseCustomException):
    """Bad request exception (400)."""

    def get_status_code(self) -> int:
        return 400


class BadGatewayException(BaseCustomException):
    """Upstream dependency failure (502)."""

    def get_status_code(self) -> int:
        return 502


class ConfigurationError(BaseCustomException):
    """Missing or invalid credentials and endpoints."""

    def get_default_message(self) -> str:
        return "error.configuration.invalid"


class InvalidAmountException(BadRequestException):
    """Amount not representable in token units."""

    def get_default_message(self) -> str:
        return "error.amount.invalid"


class RetrievalError(BadGatewayException):
    """Holder page could not be fetched within the retry budget."""

    def get_default_message(self) -> str:
        return "error.retrieval.failed"


class RPCException(BadGatewayException):
    """RPC error exception."""

    def get_default_message(self) -> str:
        return "error.rpc.failed"
