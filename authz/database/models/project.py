from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, func
from sqlalchemy.orm import relationship
from ..database import Base

class Project(Base):
    """
    태스크와 파일을 묶는 작업 단위입니다.
    프로젝트 책임자(ProjectResponsible)가 프로젝트 단위 권한의 기준이 됩니다.
    """
    __tablename__ = "projects"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)
    description = Column(String, nullable=True)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    tasks = relationship("Task", back_populates="project", cascade="all, delete-orphan")
    responsibles = relationship("ProjectResponsible", back_populates="project", cascade="all, delete-orphan")
    files = relationship("StoredFile", back_populates="project", cascade="all, delete-orphan")
