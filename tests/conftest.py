"""
Общие фикстуры тестов.
"""
from typing import Optional

import pytest

from config.settings import Settings
from gatekeeper.database.manager import DatabaseManager
from gatekeeper.exceptions import PlatformError
from gatekeeper.platform.base import JoinRequest
from gatekeeper.services.admin_service import AdminService
from gatekeeper.services.captcha_service import CaptchaService
from gatekeeper.services.policy_service import PolicyService
from gatekeeper.services.request_tracker import RequestTracker
from gatekeeper.services.verification_service import VerificationService

OPERATOR_ID = 1
GROUP_ID = -1001
USER_ID = 42


class ManualClock:
    """Часы, которые двигаются только вручную."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakePlatform:
    """Платформа, которая записывает все вызовы."""

    def __init__(self):
        self.approved = []
        self.rejected = []
        self.messages = []
        self.challenges = []
        self.members = set()
        self.fail_send = False
        self.fail_approve = False
        self.fail_membership = False

    async def approve(self, group_id: int, user_id: int, flag: str) -> None:
        if self.fail_approve:
            raise PlatformError("approve failed", group_id, user_id)
        self.approved.append((group_id, user_id, flag))

    async def reject(self, group_id: int, user_id: int, flag: str, reason: str = "") -> None:
        self.rejected.append((group_id, user_id, flag, reason))

    async def is_member(self, group_id: int, user_id: int) -> bool:
        if self.fail_membership:
            raise PlatformError("membership query failed", group_id, user_id)
        return (group_id, user_id) in self.members

    async def send_message(self, group_id: int, text: str, image: Optional[bytes] = None) -> None:
        if self.fail_send:
            raise PlatformError("send failed", group_id)
        self.messages.append((group_id, text, image))

    async def send_challenge(self, request: JoinRequest, text: str, image: Optional[bytes] = None) -> None:
        if self.fail_send:
            raise PlatformError("challenge failed", request.group_id, request.user_id)
        self.challenges.append((request.group_id, request.user_id, text, image))


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        BOT_TOKEN="123456:test-token",
        OPERATOR_USER_IDS=[OPERATOR_ID],
        MAX_RETRY_COUNT=3,
        VERIFY_TIMEOUT=300,
        LOG_FILE="",
    )


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
async def db():
    manager = DatabaseManager(":memory:")
    await manager.init_database()
    yield manager
    await manager.close()


@pytest.fixture
def platform():
    return FakePlatform()


@pytest.fixture
def policies(db, settings, clock):
    return PolicyService(db, settings, clock=clock)


@pytest.fixture
def captcha(clock):
    return CaptchaService(clock=clock)


@pytest.fixture
async def tracker(settings, clock):
    tracker = RequestTracker(
        max_retry_count=settings.MAX_RETRY_COUNT,
        amnesty_seconds=settings.RETRY_AMNESTY_SECONDS,
        clock=clock,
    )
    yield tracker
    await tracker.drain_all()


@pytest.fixture
def service(platform, db, policies, captcha, tracker, settings):
    return VerificationService(
        platform=platform,
        db_manager=db,
        policies=policies,
        captcha=captcha,
        tracker=tracker,
        settings=settings,
    )


@pytest.fixture
def admin(db, policies, settings):
    return AdminService(db, policies, settings)


@pytest.fixture
def join_request():
    return JoinRequest(platform="telegram", group_id=GROUP_ID, user_id=USER_ID, flag="flag-42")
