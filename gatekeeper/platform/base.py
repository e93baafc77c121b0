"""
Порт чат-платформы: все, что ядру нужно от транспорта.
"""
from typing import Optional, Protocol

from pydantic import BaseModel


class JoinRequest(BaseModel):
    """Заявка на вступление в группу, приведенная к единому виду."""
    platform: str
    group_id: int
    user_id: int
    flag: str


class PlatformPort(Protocol):
    """
    Операции чат-платформы.

    Реализации сообщают об ошибках транспорта через PlatformError.
    """

    async def approve(self, group_id: int, user_id: int, flag: str) -> None: ...

    async def reject(self, group_id: int, user_id: int, flag: str, reason: str = "") -> None: ...

    async def is_member(self, group_id: int, user_id: int) -> bool: ...

    async def send_message(self, group_id: int, text: str, image: Optional[bytes] = None) -> None: ...

    async def send_challenge(self, request: JoinRequest, text: str, image: Optional[bytes] = None) -> None:
        """Доставляет капчу туда, где заявитель может ее прочитать и ответить."""
        ...
