"""Сервис выдачи и проверки капч."""

import asyncio
import secrets
import string
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

from captcha.image import ImageCaptcha
from loguru import logger

from gatekeeper.exceptions import CaptchaRenderError

# без символов, которые легко спутать: 0/O, 1/I/L
ALPHABET = "".join(c for c in string.ascii_uppercase + string.digits if c not in "0O1IL")


@dataclass
class _StoredCode:
    code: str
    expires_at: float


class CaptchaService:
    """
    Хранилище выданных кодов с временем жизни.

    Код проверяется не более одного раза успешно: после совпадения запись
    удаляется. Неверный ввод запись не трогает, число попыток ограничивает
    RequestTracker. Фоновая задача периодически удаляет просроченные коды,
    но решающей является проверка срока в validate().
    """

    def __init__(
        self,
        sweep_interval: float = 60,
        clock: Callable[[], float] = time.monotonic,
        image_size: Tuple[int, int] = (160, 60),
    ):
        self.sweep_interval = sweep_interval
        self._clock = clock
        self._image_size = image_size
        self._codes: Dict[str, _StoredCode] = {}
        self._lock = asyncio.Lock()
        self._sweeper: Optional[asyncio.Task] = None

    def mint_text(self, length: int = 4) -> str:
        """Генерирует текстовый код заданной длины."""
        return "".join(secrets.choice(ALPHABET) for _ in range(length))

    def mint_image(self, length: int = 4) -> Tuple[str, bytes]:
        """Генерирует код и PNG-картинку с ним."""
        code = "".join(secrets.choice(ALPHABET) for _ in range(length))
        width, height = self._image_size
        try:
            image = ImageCaptcha(width=width, height=height)
            data = image.generate(code, format="png").getvalue()
        except Exception as e:
            raise CaptchaRenderError(f"Не удалось отрисовать капчу: {e}") from e
        return code.upper(), data

    async def register(self, key: str, code: str, ttl: float) -> None:
        """Сохраняет код для ключа, перезаписывая предыдущий."""
        async with self._lock:
            self._codes[key] = _StoredCode(code=code.upper(), expires_at=self._clock() + ttl)

    async def validate(self, key: str, submitted: str) -> bool:
        """Проверяет ответ. При совпадении код удаляется."""
        async with self._lock:
            stored = self._codes.get(key)
            if stored is None:
                return False
            if stored.expires_at < self._clock():
                del self._codes[key]
                return False
            if stored.code != submitted.strip().upper():
                return False
            del self._codes[key]
            return True

    async def discard(self, key: str) -> None:
        async with self._lock:
            self._codes.pop(key, None)

    async def sweep(self) -> int:
        """Удаляет просроченные коды. Возвращает количество удаленных."""
        now = self._clock()
        async with self._lock:
            expired = [key for key, stored in self._codes.items() if stored.expires_at < now]
            for key in expired:
                del self._codes[key]
        if expired:
            logger.debug(f"🧹 Удалено просроченных капч: {len(expired)}")
        return len(expired)

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_interval)
            try:
                await self.sweep()
            except Exception as e:
                logger.error(f"Ошибка при очистке капч: {e}")

    def start(self) -> None:
        """Запускает фоновую очистку."""
        if self._sweeper is None or self._sweeper.done():
            self._sweeper = asyncio.create_task(self._sweep_loop())
            logger.info("Фоновая очистка капч запущена")

    async def stop(self) -> None:
        """Останавливает фоновую очистку и удаляет все коды."""
        if self._sweeper is not None:
            self._sweeper.cancel()
            try:
                await self._sweeper
            except asyncio.CancelledError:
                pass
            self._sweeper = None
        async with self._lock:
            self._codes.clear()
        logger.info("Хранилище капч очищено")

    def __len__(self) -> int:
        return len(self._codes)
