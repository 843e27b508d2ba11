# ultrabms/core/exceptions.py

class AppError(Exception):
    def __init__(self, message: str, *, status_code: int = 400) -> None:
        super().__init__(message)
        self.status_code = status_code


class BadRequestError(AppError):
    def __init__(self, message: str = "Bad request") -> None:
        super().__init__(message, status_code=400)


class NotFoundError(AppError):
    def __init__(self, message: str = "Resource not found") -> None:
        super().__init__(message, status_code=404)


class ConflictError(AppError):
    def __init__(self, message: str = "Conflict") -> None:
        super().__init__(message, status_code=409)


class UnauthorizedError(AppError):
    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message, status_code=401)


class ForbiddenError(AppError):
    def __init__(self, message: str = "Forbidden") -> None:
        super().__init__(message, status_code=403)


class LockedError(AppError):
    def __init__(self, message: str = "Locked") -> None:
        super().__init__(message, status_code=423)


class TooManyRequestsError(AppError):
    def __init__(self, message: str = "Too many requests") -> None:
        super().__init__(message, status_code=429)


# -------------------------
# Auth
# -------------------------

# Mensagem única para falhas de token/sessão: o cliente não deve distinguir
# "expirado" de "revogado" de "reutilizado".
INVALID_TOKEN_MESSAGE = "Invalid or expired token"


class EmailAlreadyExistsError(ConflictError):
    def __init__(self, message: str = "Email address already exists") -> None:
        super().__init__(message)


class InvalidCredentialsError(UnauthorizedError):
    def __init__(self, message: str = "Invalid email or password") -> None:
        super().__init__(message)


class AccountLockedError(LockedError):
    def __init__(self, message: str = "Too many failed login attempts. Please try again later.") -> None:
        super().__init__(message)


class InvalidTokenError(UnauthorizedError):
    def __init__(self, message: str = INVALID_TOKEN_MESSAGE) -> None:
        super().__init__(message)


class TokenExpiredError(InvalidTokenError):
    pass


class SessionRevokedError(InvalidTokenError):
    pass


class ReuseDetectedError(InvalidTokenError):
    pass


class SessionNotFoundError(NotFoundError):
    def __init__(self, message: str = "Session not found") -> None:
        super().__init__(message)


class SessionNotOwnedError(SessionNotFoundError):
    pass


# -------------------------
# Recuperação de senha
# -------------------------

class InvalidResetTokenError(BadRequestError):
    def __init__(self, message: str = "Reset link is invalid or expired") -> None:
        super().__init__(message)


class ResetRateLimitedError(TooManyRequestsError):
    def __init__(self, message: str = "Too many password reset attempts. Please try again later.") -> None:
        super().__init__(message)


class HashMismatchError(AppError):
    """Refresh token apresentado não é o vigente da sessão."""

    def __init__(self, message: str = INVALID_TOKEN_MESSAGE) -> None:
        super().__init__(message, status_code=401)
