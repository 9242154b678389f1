"""
services/hooks.py

SessionController의 부수 효과 위임 지점.
저장/알림은 컨트롤러가 직접 하지 않고 이 객체에 넘긴다. 기본 구현은 아무것도 하지 않는다.
"""

from timed_exam.models.outcome import SubmittedAttempt
from timed_exam.models.session_state import PausePhase


class SessionHooks:
    def answer_recorded(self, question_id: str, value: str, now: int) -> None:
        """답안 한 건 저장."""

    def phase_changed(self, old: PausePhase, new: PausePhase, now: int) -> None:
        """휴식 단계 변경 알림 (UI 갱신 등)."""

    def deadline_reached(self, now: int) -> None:
        """남은 시간이 처음 0이 되었을 때 한 번 호출. 자동 제출 트리거."""

    def attempt_submitted(self, attempt: SubmittedAttempt) -> None:
        """제출된 응시 기록 저장."""
