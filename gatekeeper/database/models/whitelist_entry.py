"""
Модель для записи в белом списке (whitelist).
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class WhitelistEntry(BaseModel):
    """
    Pydantic-модель для записи в whitelist, соответствующая структуре в БД.
    """
    user_id: int
    remark: Optional[str] = None
    added_at: Optional[datetime] = None
