"""
models/outcome.py

세션 컨트롤러 호출 결과 모델.
거부(rejection)는 예외가 아니라 타입이 있는 결과로 돌려준다. 호출자(API 계층)가
사용자 메시지로 변환한다. 거부된 호출은 상태를 바꾸지 않는다.
"""

from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, Field

from timed_exam.models.session_state import PausePhase


class Rejection(str, Enum):
    PAUSE_NOT_ELIGIBLE = "pause_not_eligible"
    PAUSE_NOT_ACTIVE = "pause_not_active"
    QUESTION_LOCKED = "question_locked"
    SUBMISSION_WINDOW_CLOSED = "submission_window_closed"
    SESSION_ALREADY_FINALIZED = "session_already_finalized"


REJECTION_MESSAGES: Dict[Rejection, str] = {
    Rejection.PAUSE_NOT_ELIGIBLE: "1차 웨이브의 모든 문제에 답해야 휴식을 시작할 수 있습니다.",
    Rejection.PAUSE_NOT_ACTIVE: "현재 휴식 중이 아닙니다.",
    Rejection.QUESTION_LOCKED: "지금은 이 문제를 풀 수 없습니다.",
    Rejection.SUBMISSION_WINDOW_CLOSED: "시험 시간이 종료되어 제출할 수 없습니다.",
    Rejection.SESSION_ALREADY_FINALIZED: "이미 제출된 시험입니다.",
}


class Outcome(BaseModel):
    """성공이면 rejection은 None."""

    rejection: Optional[Rejection] = None

    @property
    def ok(self) -> bool:
        return self.rejection is None

    @property
    def message(self) -> str:
        return REJECTION_MESSAGES[self.rejection] if self.rejection else ""


class TickOutcome(Outcome):
    """
    tick() 결과.

    Attributes:
        phase:           평가 후 휴식 단계.
        remaining_ms:    남은 시간.
        pause_started:   이번 tick에서 자동 휴식이 시작되었는지.
        deadline_reached: 이번 tick에서 처음으로 남은 시간이 0이 되었는지 (자동 제출 트리거, 1회).
    """

    phase: Optional[PausePhase] = None
    remaining_ms: int = 0
    pause_started: bool = False
    deadline_reached: bool = False


class PauseOutcome(Outcome):
    phase: Optional[PausePhase] = None
    pause_started_at: Optional[int] = None
    pause_duration_ms: int = 0
    frozen_duration_ms: int = 0
    is_pause_cut_short: bool = False


class SubmittedAttempt(BaseModel):
    """제출 완료된 응시 기록. 저장은 외부 협력자(SessionHooks)가 담당."""

    answers: Dict[str, str] = Field(default_factory=dict)
    submitted_at: int = Field(..., description="서버 기준 제출 시각 (epoch ms)")
    elapsed_ms: int = Field(..., ge=0, description="휴식 시간을 뺀 실제 응시 시간")
    total_pause_ms: int = Field(default=0, ge=0)
    is_automatic: bool = False
    is_forced: bool = Field(default=False, description="유예를 넘겨 방치된 응시를 서버가 강제 종료했는지")
    overtime_ms: int = Field(default=0, ge=0, description="제한 시간을 넘긴 시간")

    model_config = {"frozen": True}


class SubmitOutcome(Outcome):
    """request_submit() / force_close() 결과."""

    attempt: Optional[SubmittedAttempt] = None
