"""
services/clock.py

서버 기준 시작 시각과 현재 시각(now)으로 경과/남은 시간을 계산한다.
휴식 중에는 시간이 흐르지 않는다. now를 휴식 시작 시각으로 고정해서 계산하고,
진행 중인 휴식 시간은 휴식이 끝날 때까지 누적 정지 시간에 더하지 않는다.

순수 계산만 담당. 시계를 직접 읽는 곳은 now_ms() 하나뿐이다.
"""

import time

from timed_exam.models.session_state import PauseRecord, SessionClock


def now_ms() -> int:
    """서버 시계 (epoch ms, 정수)."""
    return int(time.time() * 1000)


class ClockReconciler:
    def __init__(self, clock: SessionClock) -> None:
        self.clock = clock

    @property
    def allotted_ms(self) -> int:
        return self.clock.allotted_duration_ms

    def elapsed(self, now: int, pause: PauseRecord) -> int:
        """
        휴식 시간을 제외한 경과 시간 (ms).
        서버 시작 시각보다 이른 now(시계 오차)는 0으로 본다.
        """
        if pause.pause_started_at is not None:
            now = min(now, pause.pause_started_at)
        elapsed = now - self.clock.server_start_time - pause.total_frozen_duration_ms
        return max(0, elapsed)

    def remaining(self, now: int, pause: PauseRecord) -> int:
        return max(0, self.allotted_ms - self.elapsed(now, pause))

    def overtime(self, now: int, pause: PauseRecord) -> int:
        return max(0, self.elapsed(now, pause) - self.allotted_ms)

    def is_expired(self, now: int, pause: PauseRecord, grace_ms: int) -> bool:
        """
        제한 시간을 유예 시간보다 '초과'해야 만료.
        정확히 경계이거나 유예 범위 안이면 만료가 아니다.
        """
        return self.elapsed(now, pause) - self.allotted_ms > grace_ms
