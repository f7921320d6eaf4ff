class DomainError(Exception):
    """Base class for rejections the user can act on."""


class ValidationError(DomainError, ValueError):
    pass


class InsufficientFundsError(DomainError):
    def __init__(self, method: str, available: float, requested: float) -> None:
        self.method = str(method)
        self.available = float(available)
        self.requested = float(requested)
        super().__init__(f"Insufficient balance! Available: {self.available:.2f}")


class ConnectivityError(DomainError):
    pass


class NotFoundError(DomainError):
    pass


class PinMismatchError(DomainError):
    pass


class AuthenticationRequired(DomainError):
    pass


class RemoteWriteError(DomainError):
    pass


class WriteInProgressError(DomainError):
    pass
