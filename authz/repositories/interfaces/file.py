from abc import ABC, abstractmethod
from typing import Optional
from authz.database import models

class IFileRepository(ABC):
    @abstractmethod
    def create(self, file_model: models.StoredFile) -> models.StoredFile:
        """파일 메타데이터를 저장합니다."""
        pass

    @abstractmethod
    def find_by_id(self, file_id: int) -> Optional[models.StoredFile]:
        """고유 ID로 파일 메타데이터를 조회합니다."""
        pass

    @abstractmethod
    def delete(self, file_model: models.StoredFile) -> bool:
        """파일 메타데이터를 삭제합니다."""
        pass
