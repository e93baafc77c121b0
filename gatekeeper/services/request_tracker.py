"""Учет заявок, ожидающих ввода капчи."""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, List, Optional

from loguru import logger

from gatekeeper.database.models import GroupPolicy
from gatekeeper.platform.base import JoinRequest


def request_key(group_id: int, user_id: int) -> str:
    """Ключ заявки: одна активная проверка на пару (группа, пользователь)."""
    return f"{group_id}:{user_id}"


@dataclass(eq=False)
class PendingVerification:
    """Открытая проверка для одной заявки."""
    request: JoinRequest
    policy: GroupPolicy
    answer: str
    issued_at: float
    timer: Optional[asyncio.Task] = field(default=None, repr=False)

    @property
    def key(self) -> str:
        return request_key(self.request.group_id, self.request.user_id)

    def cancel_timer(self) -> None:
        if self.timer is not None and not self.timer.done():
            self.timer.cancel()
        self.timer = None


@dataclass
class RetryCounter:
    count: int = 0
    last_attempt: float = 0.0


TimeoutHandler = Callable[[PendingVerification], Awaitable[None]]


class RequestTracker:
    """
    Таблица открытых проверок и счетчиков попыток.

    Удаление записи всегда отменяет ее таймер. Сработавший таймер забирает
    запись из таблицы под той же блокировкой, поэтому обработчик таймаута
    вызывается не больше одного раза и только для записи, которая еще не
    была закрыта другим путем.
    """

    def __init__(
        self,
        max_retry_count: int = 3,
        amnesty_seconds: float = 3600,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_retry_count = max_retry_count
        self.amnesty_seconds = amnesty_seconds
        self._clock = clock
        self._pending: Dict[str, PendingVerification] = {}
        self._attempts: Dict[str, RetryCounter] = {}
        self._pending_lock = asyncio.Lock()
        self._attempts_lock = asyncio.Lock()

    def now(self) -> float:
        return self._clock()

    async def begin(self, key: str, entry: PendingVerification) -> None:
        """Регистрирует проверку, заменяя предыдущую для того же ключа."""
        async with self._pending_lock:
            previous = self._pending.get(key)
            if previous is not None and previous is not entry:
                previous.cancel_timer()
                logger.debug(f"Проверка {key} заменена новой, старый таймер отменен")
            self._pending[key] = entry

    async def get(self, key: str) -> Optional[PendingVerification]:
        async with self._pending_lock:
            return self._pending.get(key)

    async def find_by_user(self, user_id: int) -> List[PendingVerification]:
        """Открытые проверки пользователя во всех группах, сначала новые."""
        async with self._pending_lock:
            entries = [e for e in self._pending.values() if e.request.user_id == user_id]
        return sorted(entries, key=lambda e: e.issued_at, reverse=True)

    async def end(
        self, key: str, entry: Optional[PendingVerification] = None
    ) -> Optional[PendingVerification]:
        """
        Удаляет проверку и отменяет ее таймер.

        Если передан entry, удаляется только эта самая запись: вызывающий,
        у которого на руках устаревшая запись, не закроет ее замену.
        Возвращает удаленную запись или None.
        """
        async with self._pending_lock:
            current = self._pending.get(key)
            if current is None or (entry is not None and current is not entry):
                return None
            del self._pending[key]
            current.cancel_timer()
            return current

    def schedule_timeout(
        self,
        key: str,
        entry: PendingVerification,
        duration: float,
        on_fire: TimeoutHandler,
    ) -> asyncio.Task:
        """Запускает одноразовый таймер для записи."""
        entry.cancel_timer()
        entry.timer = asyncio.create_task(self._fire_after(key, entry, duration, on_fire))
        return entry.timer

    async def _fire_after(
        self,
        key: str,
        entry: PendingVerification,
        duration: float,
        on_fire: TimeoutHandler,
    ) -> None:
        await asyncio.sleep(duration)
        async with self._pending_lock:
            if self._pending.get(key) is not entry:
                return
            del self._pending[key]
            # запись уже снята, отмена этой задачи больше не нужна
            entry.timer = None

        logger.debug(f"⏰ Сработал таймер проверки {key}")
        try:
            await on_fire(entry)
        except Exception as e:
            logger.exception(f"Ошибка обработки таймаута {key}: {e}")

    async def record_attempt(self, key: str) -> bool:
        """
        Учитывает попытку ввода.

        Возвращает False, если лимит попыток уже исчерпан. Счетчик
        обнуляется, если с прошлой попытки прошло больше amnesty_seconds.
        """
        now = self._clock()
        async with self._attempts_lock:
            counter = self._attempts.get(key)
            if counter is None:
                counter = self._attempts[key] = RetryCounter()
            elif now - counter.last_attempt > self.amnesty_seconds:
                counter.count = 0

            counter.last_attempt = now
            if counter.count >= self.max_retry_count:
                return False
            counter.count += 1
            return True

    async def attempts(self, key: str) -> int:
        async with self._attempts_lock:
            counter = self._attempts.get(key)
            return counter.count if counter else 0

    async def clear_attempts(self, key: str) -> None:
        async with self._attempts_lock:
            self._attempts.pop(key, None)

    async def drain_all(self) -> int:
        """Отменяет все таймеры и очищает таблицы. Возвращает число снятых проверок."""
        async with self._pending_lock:
            entries = list(self._pending.values())
            self._pending.clear()
            for entry in entries:
                entry.cancel_timer()
        async with self._attempts_lock:
            self._attempts.clear()
        if entries:
            logger.info(f"Снято незавершенных проверок: {len(entries)}")
        return len(entries)

    def __len__(self) -> int:
        return len(self._pending)
