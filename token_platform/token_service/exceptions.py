"""
Error taxonomy for the token service.

Every error is terminal for the request and is rendered as
``{"error": message}`` with the class' HTTP status.
"""
from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


class TokenServiceError(Exception):
    """Base class for errors returned to clients"""
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(TokenServiceError):
    """Required request data is missing or malformed"""
    status_code = status.HTTP_400_BAD_REQUEST


class CredentialError(TokenServiceError):
    """The presented password does not match the stored hash"""
    status_code = status.HTTP_400_BAD_REQUEST


class TokenInvalidError(TokenServiceError):
    """The presented token is expired, badly signed or no longer current"""
    status_code = status.HTTP_401_UNAUTHORIZED


class NotFoundError(TokenServiceError):
    """A valid token references a user that does not exist"""
    status_code = status.HTTP_401_UNAUTHORIZED


async def token_service_error_handler(_request: Request, exc: TokenServiceError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def request_validation_error_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": message})
