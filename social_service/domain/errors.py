# social_service/domain/errors.py


class DomainError(Exception):
    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(DomainError):
    status_code = 404


class ValidationError(DomainError):
    status_code = 400


class AuthorizationError(DomainError):
    status_code = 403


class BlockedError(AuthorizationError):
    def __init__(
        self, message: str = "You are blocked by this user and cannot send messages."
    ):
        super().__init__(message)


class ConflictError(DomainError):
    status_code = 409
