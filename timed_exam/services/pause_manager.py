"""
services/pause_manager.py

중간 휴식 상태 머신.

    BEFORE_PAUSE ──(자동: 경과 >= 제한/2 | 수동: 1차 웨이브 전부 응답)──▶ DURING_PAUSE
    DURING_PAUSE ──(end: 휴식 시간 종료 또는 조기 재개)──▶ AFTER_PAUSE

단방향, 세션당 한 번만. AFTER_PAUSE는 종착 상태.
전이는 PauseRecord를 새로 만들어 교체한다. 거부된 호출은 레코드를 건드리지 않는다.
"""

import logging
from typing import Dict, Optional, Tuple

from timed_exam.models.outcome import Rejection
from timed_exam.models.session_state import PausePhase, PauseRecord

logger = logging.getLogger(__name__)

PAUSE_TRANSITIONS: Dict[PausePhase, Tuple[PausePhase, ...]] = {
    PausePhase.BEFORE_PAUSE: (PausePhase.DURING_PAUSE,),
    PausePhase.DURING_PAUSE: (PausePhase.AFTER_PAUSE,),
    PausePhase.AFTER_PAUSE: (),
}


def can_transition(current: PausePhase, target: PausePhase) -> bool:
    return target in PAUSE_TRANSITIONS[current]


def auto_trigger_reached(elapsed_ms: int, allotted_ms: int) -> bool:
    """경과 시간이 제한 시간의 절반 이상인지 (정수 비교)."""
    return 2 * elapsed_ms >= allotted_ms


class PauseManager:
    def __init__(self, pause_duration_ms: int, record: Optional[PauseRecord] = None) -> None:
        self.pause_duration_ms = pause_duration_ms
        self.record = record or PauseRecord()

    @property
    def phase(self) -> PausePhase:
        return self.record.phase

    def _start(self, now: int) -> None:
        self.record = PauseRecord(
            phase=PausePhase.DURING_PAUSE,
            pause_started_at=now,
            total_frozen_duration_ms=self.record.total_frozen_duration_ms,
        )

    def check_auto_trigger(self, now: int, elapsed_ms: int, allotted_ms: int) -> bool:
        """
        자동 휴식 조건을 평가한다. 이번 호출에서 휴식이 시작되었으면 True.
        BEFORE_PAUSE가 아니면 아무 일도 하지 않는다 (반복 호출해도 한 번만 전이).
        """
        if self.phase != PausePhase.BEFORE_PAUSE:
            return False
        if not auto_trigger_reached(elapsed_ms, allotted_ms):
            return False
        self._start(now)
        logger.info(f"자동 휴식 시작 (경과 {elapsed_ms}ms / 제한 {allotted_ms}ms)")
        return True

    def request_early(self, now: int, first_wave_remaining: int) -> Optional[Rejection]:
        """1차 웨이브를 모두 풀었을 때만 조기 휴식 허용."""
        if self.phase != PausePhase.BEFORE_PAUSE or first_wave_remaining > 0:
            return Rejection.PAUSE_NOT_ELIGIBLE
        self._start(now)
        logger.info("1차 웨이브 완료, 조기 휴식 시작")
        return None

    def end(self, now: int) -> Optional[Rejection]:
        """휴식 종료. 정지된 시간을 누적하고 AFTER_PAUSE로 전이."""
        if not can_transition(self.phase, PausePhase.AFTER_PAUSE):
            return Rejection.PAUSE_NOT_ACTIVE

        started_at = self.record.pause_started_at
        resumed_at = max(now, started_at)
        frozen = resumed_at - started_at
        self.record = PauseRecord(
            phase=PausePhase.AFTER_PAUSE,
            total_frozen_duration_ms=self.record.total_frozen_duration_ms + frozen,
            pause_ended_at=resumed_at,
            is_pause_cut_short=frozen < self.pause_duration_ms,
        )
        logger.info(f"휴식 종료 (휴식 {frozen}ms, 조기 재개: {self.record.is_pause_cut_short})")
        return None

    def pause_remaining_ms(self, now: int) -> int:
        """휴식 중 남은 휴식 시간. 휴식 중이 아니면 0."""
        started_at = self.record.pause_started_at
        if started_at is None:
            return 0
        return max(0, started_at + self.pause_duration_ms - now)

    def is_pause_over(self, now: int) -> bool:
        return self.phase == PausePhase.DURING_PAUSE and self.pause_remaining_ms(now) == 0

    def scheduled_end(self) -> Optional[int]:
        """진행 중인 휴식의 예정 종료 시각. 휴식 중이 아니면 None."""
        if self.phase != PausePhase.DURING_PAUSE:
            return None
        return self.record.pause_started_at + self.pause_duration_ms

    def settled(self, now: int) -> PauseRecord:
        """
        예정 종료 시각을 넘겨 방치된 휴식을 그 시각에 끝난 것으로 본 레코드.
        상태는 바꾸지 않는다.
        """
        end_at = self.scheduled_end()
        if end_at is None or now < end_at:
            return self.record
        return PauseRecord(
            phase=PausePhase.AFTER_PAUSE,
            total_frozen_duration_ms=self.record.total_frozen_duration_ms + self.pause_duration_ms,
            pause_ended_at=end_at,
        )
