from typing import Optional
from sqlalchemy.orm import Session
from authz.database import models
from authz.repositories.interfaces import IFileRepository

class SqlalchemyFileRepository(IFileRepository):
    def __init__(self, db_session: Session):
        self.db = db_session

    def create(self, file_model: models.StoredFile) -> models.StoredFile:
        self.db.add(file_model)
        self.db.commit()
        self.db.refresh(file_model)
        return file_model

    def find_by_id(self, file_id: int) -> Optional[models.StoredFile]:
        return self.db.query(models.StoredFile).filter(models.StoredFile.id == file_id).first()

    def delete(self, file_model: models.StoredFile) -> bool:
        if file_model:
            self.db.delete(file_model)
            self.db.commit()
            return True
        return False
