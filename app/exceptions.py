# app/exceptions.py


class CatalogError(Exception):
    """Базовая ошибка каталога."""

    status_code = 500
    message = "Internal Server Error"

    def __init__(self, message=None):
        super().__init__(message or self.message)
        if message:
            self.message = message


class ValidationError(CatalogError):
    """Некорректные или отсутствующие поля запроса."""

    status_code = 400
    message = "Validation error"


class CoffeeNotFound(CatalogError):
    status_code = 404
    message = "Coffee not found"


class PersistenceError(CatalogError):
    """
    Сбой на уровне хранилища. Клиенту отдаётся общее сообщение,
    подробности остаются в логах.
    """

    status_code = 500
    message = "Internal Server Error"
