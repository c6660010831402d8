from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, func
from sqlalchemy.orm import relationship
from ..database import Base

class StoredFile(Base):
    """
    업로드된 파일의 메타데이터입니다. 파일은 프로젝트에 직접 속하거나
    태스크를 통해 간접적으로 프로젝트에 속합니다.
    태스크나 프로젝트가 삭제되면 함께 삭제됩니다.
    """
    __tablename__ = "files"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True)
    filename = Column(String, nullable=False)
    uploaded_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=True)
    task_id = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    project = relationship("Project", back_populates="files")
    task = relationship("Task", back_populates="files")
