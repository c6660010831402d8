import logging

from authz.config import get_settings
from .database import engine as default_engine, SessionLocal, Base
from .models import Role, User, UserRole
from authz.services.identity_service import hash_password
from authz.services.role_catalog import RoleCatalog, ADMIN

logger = logging.getLogger(__name__)


def initialize_db(engine=None, session_factory=None, catalog: RoleCatalog = None):
    """
    테이블을 생성하고, 카탈로그의 역할과 초기 관리자 계정을 삽입합니다.
    이미 존재하는 행은 건너뛰므로 여러 번 실행해도 안전합니다.
    """
    engine = engine or default_engine
    session_factory = session_factory or SessionLocal
    catalog = catalog or RoleCatalog()
    settings = get_settings()

    # 모든 테이블을 생성합니다. (이미 존재하면 생성하지 않음)
    Base.metadata.create_all(bind=engine)
    logger.info("Tables created.")

    db = session_factory()
    try:
        roles = {}
        for name in catalog.role_names():
            role = db.query(Role).filter(Role.name == name).first()
            if not role:
                role = Role(name=name)
                db.add(role)
                logger.info("Seeding role '%s'", name)
            roles[name] = role
        db.commit()

        admin = db.query(User).filter(User.username == settings.bootstrap_admin_username).first()
        if admin:
            logger.info("Bootstrap admin already exists; skipping.")
            return

        admin = User(
            username=settings.bootstrap_admin_username,
            password_hash=hash_password(settings.bootstrap_admin_password),
            is_superuser=True,
        )
        db.add(admin)
        db.commit()

        db.add(UserRole(user_id=admin.id, role_id=roles[ADMIN].id, assigned_by=None, active=True))
        db.commit()
        logger.info("Bootstrap admin '%s' created.", admin.username)

    except Exception:
        logger.exception("Database initialization failed")
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == '__main__':
    from authz.utils.logger import configure_logging

    configure_logging()
    initialize_db()
