"""
Модель супер-администратора.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class Operator(BaseModel):
    """
    Pydantic-модель для супер-администратора, соответствующая структуре в БД.
    """
    user_id: int
    remark: Optional[str] = None
    added_at: Optional[datetime] = None
