"""
Модель настроек проверки для группы.
"""
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class VerifyMode(str, Enum):
    """Режим проверки заявок в группе."""
    WHITELIST = "whitelist"
    TEXT_CAPTCHA = "text-captcha"
    IMAGE_CAPTCHA = "image-captcha"

    @property
    def is_captcha(self) -> bool:
        return self is not VerifyMode.WHITELIST


MIN_TIMEOUT = 60
MAX_TIMEOUT = 3600


class GroupPolicy(BaseModel):
    """
    Pydantic-модель настроек группы, соответствующая структуре в БД.

    Шаблоны сообщений поддерживают подстановки {captcha} и {timeout}.
    """
    group_id: int
    mode: VerifyMode = VerifyMode.TEXT_CAPTCHA
    captcha_length: int = Field(default=4, ge=1)
    timeout: int = 300
    skip_in_group_user: bool = True
    waiting_msg: str
    approve_msg: str
    reject_msg: str
    timeout_msg: str
    updated_at: Optional[datetime] = None

    def render_waiting(self, captcha: str) -> str:
        """Подставляет код и таймаут в шаблон ожидания."""
        return (
            self.waiting_msg
            .replace("{captcha}", captcha)
            .replace("{timeout}", str(self.timeout))
        )
