from typing import List, Optional
from sqlalchemy.orm import Session
from authz.database import models
from authz.repositories.interfaces import IRoleRepository

class SqlalchemyRoleRepository(IRoleRepository):
    def __init__(self, db_session: Session):
        self.db = db_session

    def create(self, role_model: models.Role) -> models.Role:
        self.db.add(role_model)
        self.db.commit()
        self.db.refresh(role_model)
        return role_model

    def find_by_id(self, role_id: int) -> Optional[models.Role]:
        return self.db.query(models.Role).filter(models.Role.id == role_id).first()

    def find_by_name(self, name: str) -> Optional[models.Role]:
        return self.db.query(models.Role).filter(models.Role.name == name).first()

    def list_all(self) -> List[models.Role]:
        return self.db.query(models.Role).order_by(models.Role.name.asc()).all()

    def count_active_assignments(self, role_id: int) -> int:
        return self.db.query(models.UserRole).filter(
            models.UserRole.role_id == role_id,
            models.UserRole.active.is_(True),
        ).count()

    def delete(self, role: models.Role) -> bool:
        if role:
            # 비활성 이력 행은 역할과 함께 정리합니다.
            self.db.query(models.UserRole).filter(models.UserRole.role_id == role.id).delete()
            self.db.delete(role)
            self.db.commit()
            return True
        return False
