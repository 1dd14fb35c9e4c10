class AppError(ValueError):
    """Базовая ошибка приложения; контроллеры превращают её в HTTP-ответ и уведомление"""


class ValidationError(AppError):
    pass


class AuthenticationError(AppError):
    pass


class ConflictError(AppError):
    pass


class NotFoundError(AppError):
    pass


class PaymentError(AppError):
    pass


class StoreUnavailableError(AppError):
    pass
