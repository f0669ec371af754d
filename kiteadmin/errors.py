from typing import Optional

from fastapi import HTTPException
from starlette import status


class AppError(HTTPException):
    """Erro da aplicação com status HTTP fixo e mensagem para o cliente."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(status_code=type(self).status_code, detail=message or self.message)


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid request"


class DuplicateUsername(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Username already exists"


class InvalidCredentials(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Invalid username or password"


class Unauthorized(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Unauthorized. Please login."


class Forbidden(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    message = "Forbidden. Insufficient permissions."


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Not found"


class StoreError(AppError):
    """Falha do banco; guarda a exceção original do driver."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Database error"

    def __init__(self, original: BaseException, message: Optional[str] = None):
        self.original = original
        super().__init__(message or str(original) or self.message)
