"""Репозиторий для работы с таблицей audit_records."""

from typing import List, Optional

from .base import BaseRepository
from ..models.audit_record import AuditRecord


class AuditRepository(BaseRepository):
    """Репозиторий журнала проверок. Записи только добавляются."""

    async def add(self, record: AuditRecord) -> None:
        """Добавление записи в журнал."""
        query = """
            INSERT INTO audit_records (group_id, user_id, type, result, created_at)
            VALUES (?, ?, ?, ?, datetime('now'))
        """
        await self.execute(
            query,
            (record.group_id, record.user_id, record.type.value, record.result.value),
        )

    async def query(
        self,
        group_id: Optional[int] = None,
        user_id: Optional[int] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[AuditRecord]:
        """Получение записей журнала, сначала новые."""
        conditions = []
        params: list = []
        if group_id is not None:
            conditions.append("group_id = ?")
            params.append(group_id)
        if user_id is not None:
            conditions.append("user_id = ?")
            params.append(user_id)

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        query = f"""
            SELECT * FROM audit_records {where}
            ORDER BY created_at DESC, id DESC
            LIMIT ? OFFSET ?
        """
        params.extend([limit, offset])
        rows = await self.fetchall(query, tuple(params))
        return [AuditRecord(**dict(row)) for row in rows]
