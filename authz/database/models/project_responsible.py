from datetime import datetime
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from ..database import Base

RESPONSIBILITIES = ("principal", "secondary", "collaborator", "supervisor")

class ProjectResponsible(Base):
    """
    사용자가 프로젝트에 대해 가지는 상시 책임 관계입니다.
    태스크 배정과는 별개이며, (project, user, responsibility)마다 행은 하나입니다.
    """
    __tablename__ = "project_responsibles"
    __table_args__ = (
        UniqueConstraint("project_id", "user_id", "responsibility", name="uq_project_responsible"),
    )

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    responsibility = Column(String, nullable=False, default="collaborator")
    assigned_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    active = Column(Boolean, nullable=False, default=True)
    assigned_at = Column(DateTime, nullable=False, default=datetime.now)

    project = relationship("Project", back_populates="responsibles")
    user = relationship("User", back_populates="responsibilities", foreign_keys=[user_id])
