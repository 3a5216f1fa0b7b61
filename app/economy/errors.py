from __future__ import annotations


class EngineError(Exception):
    status_code: int = 500
    code: str = "E_INTERNAL"
    message: str = "Internal error"

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class ValidationError(EngineError):
    status_code = 400
    code = "E_VALIDATION"
    message = "Request validation failed"


class AuthenticationError(EngineError):
    status_code = 401
    code = "E_UNAUTHORIZED"
    message = "Access token required"


class InsufficientBalanceError(EngineError):
    status_code = 402
    code = "E_INSUFFICIENT_BALANCE"
    message = "Insufficient wallet balance"


class ForbiddenError(EngineError):
    status_code = 403
    code = "E_FORBIDDEN"
    message = "Forbidden"


class NotFoundError(EngineError):
    status_code = 404
    code = "E_NOT_FOUND"
    message = "Not found"


class ConflictError(EngineError):
    status_code = 409
    code = "E_CONFLICT"
    message = "Conflict"


class InternalError(EngineError):
    pass
