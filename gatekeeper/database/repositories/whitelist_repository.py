"""Репозиторий для работы с белым списком."""

from typing import List, Optional

from .base import BaseRepository
from ..models.whitelist_entry import WhitelistEntry


class WhitelistRepository(BaseRepository):
    """Репозиторий для управления белым списком пользователей."""

    async def add(self, user_id: int, remark: Optional[str] = None) -> None:
        """Добавление пользователя в whitelist (повторное добавление обновляет примечание)."""
        query = """
            INSERT INTO whitelist (user_id, remark, added_at)
            VALUES (?, ?, datetime('now'))
            ON CONFLICT(user_id) DO UPDATE SET
                remark = excluded.remark
        """
        await self.execute(query, (user_id, remark))

    async def remove(self, user_id: int) -> bool:
        """Удаление пользователя из whitelist."""
        cursor = await self.execute("DELETE FROM whitelist WHERE user_id = ?", (user_id,))
        return cursor.rowcount > 0

    async def exists(self, user_id: int) -> bool:
        """Проверка, находится ли пользователь в whitelist."""
        row = await self.fetchone("SELECT 1 FROM whitelist WHERE user_id = ?", (user_id,))
        return row is not None

    async def get_all(self) -> List[WhitelistEntry]:
        """Получение всех записей whitelist."""
        rows = await self.fetchall("SELECT * FROM whitelist ORDER BY added_at, user_id")
        return [WhitelistEntry(**dict(row)) for row in rows]
