from datetime import datetime
from typing import List, Optional, Dict, Any
from sqlalchemy.orm import Session
from authz.database import models
from authz.repositories.interfaces import IProjectRepository

class SqlalchemyProjectRepository(IProjectRepository):
    def __init__(self, db_session: Session):
        self.db = db_session

    def create(self, project_model: models.Project) -> models.Project:
        self.db.add(project_model)
        self.db.commit()
        self.db.refresh(project_model)
        return project_model

    def find_by_id(self, project_id: int) -> Optional[models.Project]:
        return self.db.query(models.Project).filter(models.Project.id == project_id).first()

    def update(self, project: models.Project, changes: Dict[str, Any]) -> models.Project:
        for field, value in changes.items():
            setattr(project, field, value)
        self.db.commit()
        self.db.refresh(project)
        return project

    def delete(self, project: models.Project) -> bool:
        if project:
            self.db.delete(project)
            self.db.commit()
            return True
        return False

    def find_responsible(self, project_id: int, user_id: int, responsibility: str) -> Optional[models.ProjectResponsible]:
        return self.db.query(models.ProjectResponsible).filter(
            models.ProjectResponsible.project_id == project_id,
            models.ProjectResponsible.user_id == user_id,
            models.ProjectResponsible.responsibility == responsibility,
        ).first()

    def add_responsible(self, project_id: int, user_id: int, responsibility: str, assigned_by: Optional[int]) -> models.ProjectResponsible:
        row = self.find_responsible(project_id, user_id, responsibility)
        if row is None:
            row = models.ProjectResponsible(
                project_id=project_id,
                user_id=user_id,
                responsibility=responsibility,
            )
            self.db.add(row)
        row.active = True
        row.assigned_by = assigned_by
        row.assigned_at = datetime.now()
        self.db.commit()
        self.db.refresh(row)
        return row

    def remove_responsible(self, project_id: int, user_id: int, responsibility: Optional[str] = None) -> int:
        query = self.db.query(models.ProjectResponsible).filter(
            models.ProjectResponsible.project_id == project_id,
            models.ProjectResponsible.user_id == user_id,
            models.ProjectResponsible.active.is_(True),
        )
        if responsibility:
            query = query.filter(models.ProjectResponsible.responsibility == responsibility)
        count = query.update({models.ProjectResponsible.active: False}, synchronize_session="fetch")
        self.db.commit()
        return count

    def is_responsible(self, project_id: int, user_id: int) -> bool:
        return self.db.query(models.ProjectResponsible.id).filter(
            models.ProjectResponsible.project_id == project_id,
            models.ProjectResponsible.user_id == user_id,
            models.ProjectResponsible.active.is_(True),
        ).first() is not None

    def list_responsibles(self, project_id: int) -> List[Dict[str, Any]]:
        rows = self.db.query(models.ProjectResponsible, models.User.username).join(
            models.User, models.User.id == models.ProjectResponsible.user_id
        ).filter(
            models.ProjectResponsible.project_id == project_id,
            models.ProjectResponsible.active.is_(True),
        ).order_by(models.ProjectResponsible.responsibility.asc(), models.User.username.asc()).all()

        return [
            {"user_id": row.user_id, "username": username, "responsibility": row.responsibility}
            for row, username in rows
        ]
