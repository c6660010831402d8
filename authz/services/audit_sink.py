"""
authz/services/audit_sink.py

권한 관련 변경 사항을 감사 테이블에 기록하는 비동기 기록기입니다.

기록은 요청 스레드가 아닌 백그라운드 실행기에서 이루어지며, 쓰기 실패는
운영 로그에만 남기고 호출자에게 전달하지 않습니다. 감사 기록의 유실보다
요청의 가용성을 우선합니다.
"""
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Optional

from sqlalchemy.orm import Session

from authz.database import models
from authz.repositories.interfaces import IAuditRepository
from authz.repositories.sqlalchemy import SqlalchemyAuditRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuditEvent:
    actor_user_id: Optional[int]
    action: str
    entity_type: str
    entity_id: Optional[int] = None
    before: Optional[Any] = None
    after: Optional[Any] = None
    ip: Optional[str] = None
    user_agent: Optional[str] = None

    def to_model(self, created_at: datetime = None) -> models.AuditEntry:
        return models.AuditEntry(
            actor_user_id=self.actor_user_id,
            action=self.action,
            entity_type=self.entity_type,
            entity_id=self.entity_id,
            before=self.before,
            after=self.after,
            ip=self.ip,
            user_agent=self.user_agent,
            created_at=created_at or datetime.now(),
        )


class AuditSink:
    def __init__(self, session_factory: Callable[[], Session],
                 repository_factory: Callable[[Session], IAuditRepository] = SqlalchemyAuditRepository,
                 max_workers: int = 1):
        """
        AuditSink를 초기화합니다.

        Args:
            session_factory: 기록마다 새 DB 세션을 여는 팩토리. (요청 세션과 분리)
            repository_factory: 세션을 받아 감사 리포지토리를 만드는 팩토리.
            max_workers: 백그라운드 기록 스레드 수.
        """
        self.session_factory = session_factory
        self.repository_factory = repository_factory
        self._executor = ThreadPoolExecutor(max_workers=max(1, max_workers), thread_name_prefix="audit")

    def record(self, event: AuditEvent) -> Optional[Future]:
        """
        감사 이벤트를 기록하도록 예약하고 즉시 반환합니다. 예외를 발생시키지 않습니다.

        Returns:
            예약된 작업의 Future. 실행기가 이미 종료되었으면 None.
        """
        try:
            return self._executor.submit(self._write, event)
        except RuntimeError:
            logger.error("Audit sink is closed; dropping event %s on %s:%s",
                         event.action, event.entity_type, event.entity_id)
            return None

    def close(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def _write(self, event: AuditEvent) -> Optional[int]:
        session = None
        try:
            session = self.session_factory()
            entry = self.repository_factory(session).append(event.to_model())
            return entry.id
        except Exception:
            logger.exception("Failed to write audit entry %s on %s:%s",
                             event.action, event.entity_type, event.entity_id)
            return None
        finally:
            if session is not None:
                session.close()
