# social_service/infrastructure/sweeper.py
import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime

from social_service.domain.policies import auto_delete_window
from social_service.gateways.message_gateway import MessageGateway
from social_service.gateways.user_gateway import UserGateway
from social_service.infrastructure.database import Database
from social_service.infrastructure.models import utcnow
from social_service.infrastructure.uow import UnitOfWork


@dataclass
class SweepReport:
    expired_deleted: int = 0
    policy_deleted: int = 0
    failed_users: list[int] = field(default_factory=list)
    expired_failed: bool = False
    skipped: bool = False

    @property
    def total(self) -> int:
        return self.expired_deleted + self.policy_deleted


class ExpirySweeper:
    """Deletes expired messages on a fixed interval.

    Pass one removes messages whose ``auto_delete_at`` has passed. Pass two
    applies each user's ``auto_delete_chat`` window to the messages they sent.
    A run requested while another is in progress is skipped.
    """

    def __init__(
        self, database: Database, logger: logging.Logger, interval: float = 3600
    ):
        self.database = database
        self.logger = logger
        self.interval = interval
        self._lock = asyncio.Lock()
        self._task: asyncio.Task | None = None

    async def run_once(self, now: datetime | None = None) -> SweepReport:
        if self._lock.locked():
            self.logger.info("Sweep already running, skipping")
            return SweepReport(skipped=True)

        async with self._lock:
            now = now or utcnow()
            report = SweepReport()
            try:
                report.expired_deleted = await self._delete_expired(now)
            except Exception as e:
                report.expired_failed = True
                self.logger.error(f"Expired message pass failed: {e!s}")
            await self._apply_user_policies(now, report)
            self.logger.info(
                f"Sweep done: {report.expired_deleted} expired, "
                f"{report.policy_deleted} by user policy"
            )
            return report

    async def _delete_expired(self, now: datetime) -> int:
        async with self.database.session() as session:
            gateway = MessageGateway(session, UnitOfWork(session))
            deleted = await gateway.delete_expired(now)
            await session.commit()
            return deleted

    async def _apply_user_policies(self, now: datetime, report: SweepReport) -> None:
        async with self.database.session() as session:
            users = await UserGateway(session, UnitOfWork(session)).get_auto_delete_users()

        for user_id, policy in users:
            try:
                window = auto_delete_window(policy)
                if window is None:
                    continue
                async with self.database.session() as session:
                    gateway = MessageGateway(session, UnitOfWork(session))
                    report.policy_deleted += await gateway.delete_sent_before(
                        user_id, now - window
                    )
                    await session.commit()
            except Exception as e:
                report.failed_users.append(user_id)
                self.logger.error(f"Sweep failed for user {user_id}: {e!s}")

    async def _loop(self) -> None:
        while True:
            try:
                await self.run_once()
            except Exception as e:
                self.logger.error(f"Sweep run failed: {e!s}")
            await asyncio.sleep(self.interval)

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._loop())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
