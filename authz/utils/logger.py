# authz/utils/logger.py
import logging
import sys

from authz.config import get_settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = None) -> None:
    """
    루트 로거에 표준 출력 핸들러를 하나만 설치합니다.
    여러 번 호출되어도 핸들러가 중복되지 않습니다.
    """
    root = logging.getLogger()
    root.setLevel(level or get_settings().log_level)
    if any(getattr(h, "_authz_handler", False) for h in root.handlers):
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._authz_handler = True
    root.addHandler(handler)
