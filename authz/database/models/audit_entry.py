from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, JSON
from ..database import Base

class AuditEntry(Base):
    """
    권한과 관련된 상태 변경(역할 부여/회수, 관리자 권한 변경 등)의 기록입니다.
    한 번 쓰이면 수정되지 않으며, 보존 기간이 지나면 일괄 삭제됩니다.
    """
    __tablename__ = "audit_entries"
    id = Column(Integer, primary_key=True, index=True)
    actor_user_id = Column(Integer, nullable=True, index=True)
    action = Column(String, nullable=False)
    entity_type = Column(String, nullable=False)
    entity_id = Column(Integer, nullable=True)
    before = Column(JSON, nullable=True)
    after = Column(JSON, nullable=True)
    ip = Column(String, nullable=True)
    user_agent = Column(String, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now, index=True)
