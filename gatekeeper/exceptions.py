"""
Исключения сервиса проверки заявок.
"""

from typing import Optional


class GatekeeperError(Exception):
    """Базовая ошибка сервиса."""

    def __init__(self, message: str, group_id: Optional[int] = None,
                 user_id: Optional[int] = None):
        super().__init__(message)
        self.group_id = group_id
        self.user_id = user_id


class PlatformError(GatekeeperError):
    """Ошибка обращения к чат-платформе (отправка, одобрение, запрос участника)."""
    pass


class UnsupportedPlatformError(PlatformError):
    """Платформа не поддерживается."""
    pass


class StorageError(GatekeeperError):
    """Ошибка чтения или записи в хранилище."""
    pass


class CaptchaRenderError(GatekeeperError):
    """Не удалось отрисовать капчу-картинку."""
    pass
