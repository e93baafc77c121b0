"""Настройки конфигурации сервиса проверки заявок на вступление."""
from typing import Annotated, List

from pydantic import Field, field_validator, SecretStr
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

VERIFY_MODES = ("whitelist", "text-captcha", "image-captcha")


class Settings(BaseSettings):
    """Основные настройки приложения."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # 1. Настройки Telegram
    BOT_TOKEN: SecretStr = Field(..., description="Токен Telegram бота")
    OPERATOR_USER_IDS: Annotated[List[int], NoDecode] = Field(
        default=[],
        description="ID супер-администраторов (через запятую в .env)"
    )

    # 2. Настройки проверки
    DEFAULT_VERIFY_MODE: str = Field(
        default="text-captcha",
        description="Режим проверки для новых групп"
    )
    DEFAULT_CAPTCHA_MODE: str = Field(
        default="text-captcha",
        description="Режим, который включает команда enable"
    )
    DEFAULT_CAPTCHA_LENGTH: int = Field(
        default=4,
        ge=1,
        description="Длина кода капчи для новых групп"
    )
    VERIFY_TIMEOUT: int = Field(
        default=300,
        description="Время на ввод капчи в секундах"
    )
    SKIP_IN_GROUP_USER: bool = Field(
        default=True,
        description="Пропускать пользователей, которые уже состоят в группе"
    )
    MAX_RETRY_COUNT: int = Field(
        default=3,
        ge=1,
        description="Максимальное количество неверных попыток"
    )
    RETRY_AMNESTY_SECONDS: int = Field(
        default=3600,
        description="Через сколько секунд простоя счетчик попыток сбрасывается"
    )
    ENABLE_IMAGE_CAPTCHA: bool = Field(
        default=True,
        description="Разрешить капчу-картинку"
    )

    # 3. Кэши и фоновые задачи
    POLICY_CACHE_TTL: int = Field(
        default=60,
        description="Время жизни кэша настроек группы в секундах"
    )
    CAPTCHA_SWEEP_INTERVAL: int = Field(
        default=60,
        description="Интервал очистки просроченных капч в секундах"
    )

    # 4. Настройки базы данных и журнала
    DATABASE_PATH: str = Field(
        default="data/gatekeeper.db",
        description="Путь к файлу SQLite"
    )
    ENABLE_AUDIT: bool = Field(
        default=True,
        description="Записывать результаты проверок в журнал"
    )
    AUDIT_QUERY_LIMIT: int = Field(
        default=10,
        description="Сколько записей журнала показывает команда audit"
    )

    # 5. Шаблоны сообщений
    WAITING_MSG: str = Field(
        default="Введите код: {captcha}. Код действителен {timeout} секунд.",
        description="Сообщение с капчей"
    )
    APPROVE_MSG: str = Field(
        default="проверка пройдена, добро пожаловать!",
        description="Сообщение об одобрении"
    )
    REJECT_MSG: str = Field(
        default="проверка не пройдена, заявка отклонена.",
        description="Сообщение об отклонении"
    )
    TIMEOUT_MSG: str = Field(
        default="время на проверку истекло, заявка отклонена.",
        description="Сообщение о таймауте"
    )

    # 6. Веб-консоль
    CONSOLE_ENABLED: bool = Field(
        default=False,
        description="Запускать HTTP API консоли рядом с ботом"
    )
    CONSOLE_HOST: str = Field(default="127.0.0.1", description="Адрес HTTP API консоли")
    CONSOLE_PORT: int = Field(default=8080, description="Порт HTTP API консоли")
    CONSOLE_TOKEN: SecretStr = Field(
        default=SecretStr(""),
        description="Bearer-токен для API консоли (пусто - без проверки)"
    )

    # 7. Логирование
    LOG_LEVEL: str = Field(default="INFO", description="Уровень логирования")
    LOG_FILE: str = Field(default="gatekeeper.log", description="Файл лога (пусто - без файла)")

    # Валидаторы
    @field_validator('OPERATOR_USER_IDS', mode='before')
    def parse_ids(cls, value):
        if isinstance(value, str):
            return [int(x.strip()) for x in value.split(',') if x.strip()]
        if isinstance(value, int):
            return [value]
        return value

    @field_validator('DEFAULT_VERIFY_MODE', 'DEFAULT_CAPTCHA_MODE')
    def check_mode(cls, value):
        if value not in VERIFY_MODES:
            raise ValueError(f"неизвестный режим проверки: {value}")
        return value

    # Методы для удобства
    def get_bot_token(self) -> str:
        """Получить токен бота в виде строки."""
        return self.BOT_TOKEN.get_secret_value()


def get_settings() -> Settings:
    """Загрузка настроек из окружения и .env."""
    return Settings()
