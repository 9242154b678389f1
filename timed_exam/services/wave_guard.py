"""
services/wave_guard.py

휴식 단계와 문제 위치(midpoint 기준)로 문제 접근 가능 여부를 판단한다.
숨은 상태 없는 순수 함수. 같은 입력이면 언제 몇 번 호출해도 같은 결과.

    BEFORE_PAUSE : 1차 웨이브([0, midpoint))만 접근 가능
    DURING_PAUSE : 모든 문제 잠금
    AFTER_PAUSE  : 모든 문제 접근 가능 (1차 웨이브 검토/수정 포함)
"""

from typing import Optional, Tuple

from timed_exam.models.session_state import PausePhase

LOCKED_UNTIL_PAUSE = "이 문제는 중간 휴식 이후에 열립니다."
LOCKED_DURING_PAUSE = "휴식 중에는 모든 문제가 잠겨 있습니다."


def is_accessible(question_index: int, phase: PausePhase, midpoint: int) -> bool:
    if phase == PausePhase.DURING_PAUSE:
        return False
    if phase == PausePhase.BEFORE_PAUSE:
        return question_index < midpoint
    return True


def access_decision(question_index: int, phase: PausePhase, midpoint: int) -> Tuple[bool, str]:
    """(허용 여부, 사유). 허용이면 사유는 빈 문자열."""
    if is_accessible(question_index, phase, midpoint):
        return True, ""
    if phase == PausePhase.DURING_PAUSE:
        return False, LOCKED_DURING_PAUSE
    return False, LOCKED_UNTIL_PAUSE


def accessible_range(phase: PausePhase, midpoint: int, total: int) -> Optional[Tuple[int, int]]:
    """
    접근 가능한 인덱스 범위 (start, end), 양끝 포함.
    휴식 중이면 None.
    """
    if phase == PausePhase.DURING_PAUSE:
        return None
    if phase == PausePhase.BEFORE_PAUSE:
        return 0, midpoint - 1
    return 0, total - 1
