from datetime import datetime
from typing import List, Optional, Sequence
from sqlalchemy.orm import Session
from authz.database import models
from authz.repositories.interfaces import IUserRoleRepository

class SqlalchemyUserRoleRepository(IUserRoleRepository):
    def __init__(self, db_session: Session):
        self.db = db_session

    def find(self, user_id: int, role_id: int) -> Optional[models.UserRole]:
        return self.db.query(models.UserRole).filter(
            models.UserRole.user_id == user_id,
            models.UserRole.role_id == role_id,
        ).first()

    def create(self, user_id: int, role_id: int, assigned_by: Optional[int]) -> models.UserRole:
        assignment = self._insert(user_id, role_id, assigned_by)
        self.db.commit()
        self.db.refresh(assignment)
        return assignment

    def reactivate(self, assignment: models.UserRole, assigned_by: Optional[int]) -> models.UserRole:
        self._activate(assignment, assigned_by)
        self.db.commit()
        self.db.refresh(assignment)
        return assignment

    def deactivate(self, assignment: models.UserRole) -> models.UserRole:
        assignment.active = False
        self.db.commit()
        self.db.refresh(assignment)
        return assignment

    def replace_active_roles(self, user_id: int, role_ids: Sequence[int], assigned_by: Optional[int]) -> List[models.UserRole]:
        try:
            self.db.query(models.UserRole).filter(
                models.UserRole.user_id == user_id,
                models.UserRole.active.is_(True),
            ).update({models.UserRole.active: False}, synchronize_session="fetch")

            assignments = []
            for role_id in dict.fromkeys(role_ids):
                existing = self.find(user_id, role_id)
                if existing:
                    self._activate(existing, assigned_by)
                    assignments.append(existing)
                else:
                    assignments.append(self._insert(user_id, role_id, assigned_by))
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        for assignment in assignments:
            self.db.refresh(assignment)
        return assignments

    def list_active_role_names(self, user_id: int) -> List[str]:
        rows = self.db.query(models.Role.name).join(
            models.UserRole, models.UserRole.role_id == models.Role.id
        ).filter(
            models.UserRole.user_id == user_id,
            models.UserRole.active.is_(True),
        ).order_by(models.Role.name.asc()).all()
        return [name for (name,) in rows]

    def list_history(self, user_id: int) -> List[models.UserRole]:
        return self.db.query(models.UserRole).filter(
            models.UserRole.user_id == user_id
        ).order_by(models.UserRole.assigned_at.desc(), models.UserRole.id.desc()).all()

    def list_user_ids_with_role(self, role_id: int) -> List[int]:
        rows = self.db.query(models.UserRole.user_id).filter(
            models.UserRole.role_id == role_id,
            models.UserRole.active.is_(True),
        ).order_by(models.UserRole.user_id.asc()).all()
        return [user_id for (user_id,) in rows]

    def delete(self, assignment: models.UserRole) -> bool:
        if assignment:
            self.db.delete(assignment)
            self.db.commit()
            return True
        return False

    def _insert(self, user_id: int, role_id: int, assigned_by: Optional[int]) -> models.UserRole:
        assignment = models.UserRole(
            user_id=user_id,
            role_id=role_id,
            assigned_by=assigned_by,
            active=True,
            assigned_at=datetime.now(),
        )
        self.db.add(assignment)
        self.db.flush()
        return assignment

    @staticmethod
    def _activate(assignment: models.UserRole, assigned_by: Optional[int]) -> None:
        assignment.active = True
        assignment.assigned_by = assigned_by
        assignment.assigned_at = datetime.now()
