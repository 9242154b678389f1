"""
services/progress_alert.py

1차 웨이브 진행도 알림.
현재 보고 있는 문제 위치가 아니라 '답한 문제 수'만으로 계산한다.
문제 목록을 건너뛰며 풀어도 알림이 정확해야 하기 때문.
"""

from enum import Enum

from timed_exam.models.exam_layout import AnswerLedger, ExamLayout
from timed_exam.models.session_state import PausePhase

APPROACHING_THRESHOLD = 10
IMMINENT_THRESHOLD = 3


class AlertLevel(str, Enum):
    NORMAL = "normal"
    APPROACHING = "approaching"
    IMMINENT = "imminent"
    COMPLETED = "completed"


def remaining_in_wave(layout: ExamLayout, ledger: AnswerLedger) -> int:
    """1차 웨이브에서 아직 답하지 않은 문제 수 (0 미만 없음)."""
    answered = ledger.answered_count(layout.first_wave)
    return max(0, layout.midpoint - answered)


def classify(remaining: int) -> AlertLevel:
    if remaining <= 0:
        return AlertLevel.COMPLETED
    if remaining <= IMMINENT_THRESHOLD:
        return AlertLevel.IMMINENT
    if remaining <= APPROACHING_THRESHOLD:
        return AlertLevel.APPROACHING
    return AlertLevel.NORMAL


def should_show_alert(remaining: int) -> bool:
    """남은 문제가 10개 이하이면 휴식 예고 배너 표시."""
    return 0 <= remaining <= APPROACHING_THRESHOLD


def can_take_early_pause(phase: PausePhase, remaining: int) -> bool:
    return phase == PausePhase.BEFORE_PAUSE and remaining == 0
