from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship
from ..database import Base

class Role(Base):
    """
    사용자에게 부여할 수 있는 권한 묶음의 이름입니다.
    (예: 'admin', 'project_owner', 'task_owner').
    실제 권한 목록은 DB가 아닌 RoleCatalog가 결정합니다.
    """
    __tablename__ = "roles"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)

    user_assignments = relationship("UserRole", back_populates="role")
