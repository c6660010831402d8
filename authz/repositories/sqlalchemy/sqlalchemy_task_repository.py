from typing import Optional, Dict, Any
from sqlalchemy.orm import Session
from authz.database import models
from authz.repositories.interfaces import ITaskRepository

class SqlalchemyTaskRepository(ITaskRepository):
    def __init__(self, db_session: Session):
        self.db = db_session

    def create(self, task_model: models.Task) -> models.Task:
        self.db.add(task_model)
        self.db.commit()
        self.db.refresh(task_model)
        return task_model

    def find_by_id(self, task_id: int) -> Optional[models.Task]:
        return self.db.query(models.Task).filter(models.Task.id == task_id).first()

    def update(self, task: models.Task, changes: Dict[str, Any]) -> models.Task:
        for field, value in changes.items():
            setattr(task, field, value)
        self.db.commit()
        self.db.refresh(task)
        return task

    def delete(self, task: models.Task) -> bool:
        if task:
            self.db.delete(task)
            self.db.commit()
            return True
        return False
