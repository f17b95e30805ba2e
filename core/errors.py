"""Доменные ошибки движков реакций, матчей и комментариев.

Каждая ошибка несёт HTTP-статус и машинный код; main.py превращает их
в JSON-ответ единого формата.
"""
from starlette import status


class AppError(Exception):
    """Базовая ошибка приложения."""

    code = "APP_ERROR"
    http_status = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_response(self) -> dict:
        return {
            "success": False,
            "error": {
                "code": self.code,
                "message": self.message,
            },
        }


class NotFoundError(AppError):
    code = "NOT_FOUND"
    http_status = status.HTTP_404_NOT_FOUND

    def __init__(self, resource: str, resource_id=None):
        if resource_id is None:
            message = f"{resource} not found"
        else:
            message = f"{resource} '{resource_id}' not found"
        super().__init__(message)
        self.resource = resource
        self.resource_id = resource_id


class ValidationError(AppError):
    code = "VALIDATION_ERROR"
    http_status = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class InvalidKindError(ValidationError):
    code = "INVALID_KIND"

    def __init__(self, kind, allowed):
        super().__init__(
            f"Invalid reaction type '{kind}', expected one of: {', '.join(allowed)}",
            field="type",
        )
        self.kind = kind


class InvalidActionError(ValidationError):
    code = "INVALID_ACTION"

    def __init__(self, action, allowed):
        super().__init__(
            f"Invalid swipe action '{action}', expected one of: {', '.join(allowed)}",
            field="action",
        )
        self.action = action


class SelfSwipeError(AppError):
    code = "SELF_SWIPE"
    http_status = status.HTTP_400_BAD_REQUEST

    def __init__(self):
        super().__init__("You cannot swipe on yourself")


class PermissionDeniedError(AppError):
    code = "PERMISSION_DENIED"
    http_status = status.HTTP_403_FORBIDDEN


class ConcurrencyConflictError(AppError):
    """Конкурентная запись не удалась даже после всех повторов."""

    code = "CONCURRENCY_CONFLICT"
    http_status = status.HTTP_409_CONFLICT

    def __init__(self, operation: str, attempts: int):
        super().__init__(f"{operation} failed after {attempts} attempts due to concurrent updates")
        self.operation = operation
        self.attempts = attempts
