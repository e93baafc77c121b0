"""Репозиторий для работы с таблицей operators."""

from typing import List, Optional

from .base import BaseRepository
from ..models.operator import Operator


class OperatorRepository(BaseRepository):
    """Репозиторий для управления супер-администраторами."""

    async def add(self, user_id: int, remark: Optional[str] = None) -> None:
        """Добавление супер-администратора."""
        query = """
            INSERT INTO operators (user_id, remark, added_at)
            VALUES (?, ?, datetime('now'))
            ON CONFLICT(user_id) DO UPDATE SET
                remark = excluded.remark
        """
        await self.execute(query, (user_id, remark))

    async def remove(self, user_id: int) -> bool:
        """Удаление супер-администратора."""
        cursor = await self.execute("DELETE FROM operators WHERE user_id = ?", (user_id,))
        return cursor.rowcount > 0

    async def exists(self, user_id: int) -> bool:
        """Проверка, является ли пользователь супер-администратором."""
        row = await self.fetchone("SELECT 1 FROM operators WHERE user_id = ?", (user_id,))
        return row is not None

    async def get_all(self) -> List[Operator]:
        """Получение списка супер-администраторов."""
        rows = await self.fetchall("SELECT * FROM operators ORDER BY added_at, user_id")
        return [Operator(**dict(row)) for row in rows]
