from sqlalchemy import Column, Integer, String, Boolean
from sqlalchemy.orm import relationship
from ..database import Base

class User(Base):
    """
    시스템에 로그인하여 프로젝트, 태스크, 파일에 접근하는 사용자입니다.
    사용자는 UserRole을 통해 여러 역할을 동시에 가질 수 있습니다.
    삭제된 사용자의 ID는 재사용되지 않습니다. (sqlite_autoincrement)
    """
    __tablename__ = "users"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    is_superuser = Column(Boolean, nullable=False, default=False)

    role_assignments = relationship(
        "UserRole",
        back_populates="user",
        foreign_keys="UserRole.user_id",
        cascade="all, delete-orphan",
    )
    # 사용자를 삭제하면 프로젝트 책임 관계도 함께 삭제됩니다.
    responsibilities = relationship(
        "ProjectResponsible",
        back_populates="user",
        foreign_keys="ProjectResponsible.user_id",
        cascade="all, delete-orphan",
    )
