"""
Модели, связанные с журналом проверок.
"""
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class VerifyType(str, Enum):
    """Каким путем была принята заявка."""
    CAPTCHA = "captcha"
    IMAGE_CAPTCHA = "image-captcha"
    WHITELIST = "whitelist"
    WHITELIST_MODE = "whitelist-mode"
    SKIP = "skip"
    TIMEOUT = "timeout"


class VerifyResult(str, Enum):
    """Итог проверки."""
    PASS = "pass"
    FAIL = "fail"
    TIMEOUT = "timeout"


class AuditRecord(BaseModel):
    """
    Pydantic-модель для записи журнала, соответствующая структуре в БД.
    """
    id: Optional[int] = None
    group_id: int
    user_id: int
    type: VerifyType
    result: VerifyResult
    created_at: Optional[datetime] = None
