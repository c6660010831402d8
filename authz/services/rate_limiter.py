import threading
import time
from typing import Callable, Dict, Tuple

from authz.config import get_settings
from authz.services.exceptions import RateLimitExceeded


class UserRateLimiter:
    """
    사용자 ID별 고정 윈도우 요청 제한기입니다.

    상태는 프로세스 메모리에만 있으므로 여러 서버 프로세스 사이에서는
    공유되지 않습니다. 다중 인스턴스 배포에는 공유 저장소가 필요합니다.
    """

    def __init__(self, max_requests: int = None, window_seconds: int = None, clock: Callable[[], float] = time.monotonic):
        self.max_requests = get_settings().user_rate_limit_max_requests if max_requests is None else max_requests
        self.window_seconds = get_settings().user_rate_limit_window_seconds if window_seconds is None else window_seconds
        self._clock = clock
        self._windows: Dict[int, Tuple[int, float]] = {}
        self._lock = threading.Lock()

    def hit(self, user_id: int) -> int:
        """
        요청 한 건을 기록하고 남은 허용 횟수를 반환합니다.

        Raises:
            RateLimitExceeded: 현재 윈도우의 한도를 넘었을 때.
        """
        now = self._clock()
        with self._lock:
            count, reset_at = self._windows.get(user_id, (0, now + self.window_seconds))
            if now > reset_at:
                count, reset_at = 0, now + self.window_seconds
            if count >= self.max_requests:
                raise RateLimitExceeded(
                    f"Too many requests. Retry in {int(reset_at - now) + 1} seconds."
                )
            self._windows[user_id] = (count + 1, reset_at)
            return self.max_requests - count - 1

    def reset(self, user_id: int = None) -> None:
        with self._lock:
            if user_id is None:
                self._windows.clear()
            else:
                self._windows.pop(user_id, None)
