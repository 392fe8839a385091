from typing import Any

from fastapi import status


class AppError(Exception):
    code: str = "APP_ERROR"
    message: str = "Application error"
    status_code: int = status.HTTP_400_BAD_REQUEST
    details: Any | None = None

    def __init__(
        self,
        message: str | None = None,
        *,
        code: str | None = None,
        status_code: int | None = None,
        details: Any | None = None,
    ):
        if message is not None:
            self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code
        if details is not None:
            self.details = details

        super().__init__(self.message)


class ValidationError(AppError):
    code = "VALIDATION_ERROR"
    message = "Validation error"
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(AppError):
    code = "NOT_FOUND"
    message = "Resource not found"
    status_code = status.HTTP_404_NOT_FOUND


class AuthError(AppError):
    code = "AUTH_ERROR"
    message = "Authentication failed"
    status_code = status.HTTP_401_UNAUTHORIZED


class OperationForbiddenError(AppError):
    """The principal has no standing for the requested operation.

    Raised when a user has no membership in the target space, or when a
    create request is not backed by a create-capable token for the class.
    ``details`` always carries the user id plus the class and/or space.
    """

    code = "OPERATION_FORBIDDEN"
    message = "Operation forbidden"
    status_code = status.HTTP_403_FORBIDDEN

    @classmethod
    def for_class(cls, user_id: str, class_name: str) -> "OperationForbiddenError":
        return cls(
            f"Permission denied for user {user_id} to create {class_name}",
            details={"user_id": user_id, "class_name": class_name},
        )

    @classmethod
    def for_space(
        cls, user_id: str, space_id: str, class_name: str | None = None
    ) -> "OperationForbiddenError":
        details: dict[str, Any] = {"user_id": user_id, "space_id": space_id}
        if class_name is not None:
            details["class_name"] = class_name
        return cls(
            f"Permission denied for user {user_id} in space {space_id}",
            details=details,
        )


class InternalError(AppError):
    code = "INTERNAL_ERROR"
    message = "Internal server error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


ERROR_CODE_BY_STATUS: dict[int, str] = {
    status.HTTP_400_BAD_REQUEST: ValidationError.code,
    status.HTTP_401_UNAUTHORIZED: AuthError.code,
    status.HTTP_403_FORBIDDEN: OperationForbiddenError.code,
    status.HTTP_404_NOT_FOUND: NotFoundError.code,
    status.HTTP_422_UNPROCESSABLE_ENTITY: ValidationError.code,
}


def error_payload(
    code: str,
    message: str,
    details: Any | None = None,
) -> dict[str, Any]:
    return {"error": {"code": code, "message": message, "details": details}}


def resolve_error_code(status_code: int) -> str:
    if status_code in ERROR_CODE_BY_STATUS:
        return ERROR_CODE_BY_STATUS[status_code]
    if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        return InternalError.code
    return "UNKNOWN_ERROR"
