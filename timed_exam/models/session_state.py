"""
models/session_state.py

시험 세션의 시간 관련 상태 모델.
Pydantic BaseModel 기반 — 생성 시점에 불변식을 검증한다 (잘못된 설정은 시험 시작 전에 실패).
모든 시간 값은 정수 밀리초(epoch ms) 단위. UI 코드 없음.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator


class PausePhase(str, Enum):
    """중간 휴식(pause) 단계. BEFORE → DURING → AFTER 단방향."""

    BEFORE_PAUSE = "before_pause"
    DURING_PAUSE = "during_pause"
    AFTER_PAUSE = "after_pause"


class ExamConfig(BaseModel):
    """
    시험 세션 생성 시 외부(시험 설정)에서 한 번 주입되는 값.

    Attributes:
        server_start_time:      서버가 발급한 시험 시작 시각 (epoch ms).
        allotted_duration_ms:   총 제한 시간 (ms). 반드시 양수.
        pause_duration_ms:      설정된 휴식 시간 (ms).
        auto_submit_grace_ms:   자동 제출 허용 오차. 타이머/네트워크 지연 흡수용.
        manual_submit_grace_ms: 수동 제출 허용 오차. 마감 직전 제출 방지용으로 더 짧다.
    """

    server_start_time: int = Field(
        ...,
        ge=0,
        description="서버 기준 시험 시작 시각 (epoch ms)"
    )
    allotted_duration_ms: int = Field(
        ...,
        gt=0,
        description="총 제한 시간 (ms)"
    )
    pause_duration_ms: int = Field(
        default=15 * 60 * 1000,
        ge=0,
        description="중간 휴식 시간 (ms, 기본 15분)"
    )
    auto_submit_grace_ms: int = Field(
        default=30_000,
        ge=0,
        description="자동 제출 유예 시간 (ms)"
    )
    manual_submit_grace_ms: int = Field(
        default=5_000,
        ge=0,
        description="수동 제출 유예 시간 (ms)"
    )

    model_config = {"frozen": True}

    @model_validator(mode='after')
    def validate_grace_order(self) -> 'ExamConfig':
        """자동 제출 유예는 수동 제출 유예보다 짧을 수 없다."""
        if self.auto_submit_grace_ms < self.manual_submit_grace_ms:
            raise ValueError(
                f"자동 제출 유예({self.auto_submit_grace_ms}ms)가 "
                f"수동 제출 유예({self.manual_submit_grace_ms}ms)보다 짧습니다."
            )
        return self

    @property
    def clock(self) -> 'SessionClock':
        return SessionClock(
            server_start_time=self.server_start_time,
            allotted_duration_ms=self.allotted_duration_ms,
        )


class SessionClock(BaseModel):
    """서버 기준 시작 시각과 제한 시간. 생성 후 변경 불가."""

    server_start_time: int = Field(..., ge=0)
    allotted_duration_ms: int = Field(..., gt=0)

    model_config = {"frozen": True}


class PauseRecord(BaseModel):
    """
    휴식 상태 기록.

    불변식: phase == DURING_PAUSE  <=>  pause_started_at is not None.
    total_frozen_duration_ms는 휴식이 끝날 때만 증가한다.
    전이 시에는 새 레코드를 만들어 교체한다 (검증 재실행).
    """

    phase: PausePhase = PausePhase.BEFORE_PAUSE
    pause_started_at: Optional[int] = Field(
        default=None,
        description="휴식 시작 시각 (epoch ms). 휴식 중일 때만 값이 있다."
    )
    total_frozen_duration_ms: int = Field(
        default=0,
        ge=0,
        description="휴식으로 정지된 누적 시간 (ms)"
    )
    pause_ended_at: Optional[int] = Field(
        default=None,
        description="휴식 종료 시각 (epoch ms)"
    )
    is_pause_cut_short: bool = Field(
        default=False,
        description="설정된 휴식 시간이 끝나기 전에 재개했는지 여부"
    )

    model_config = {"frozen": True}

    @model_validator(mode='after')
    def validate_phase_matches_start(self) -> 'PauseRecord':
        during = self.phase == PausePhase.DURING_PAUSE
        if during != (self.pause_started_at is not None):
            raise ValueError(
                f"휴식 단계({self.phase.value})와 pause_started_at({self.pause_started_at})이 일치하지 않습니다."
            )
        if self.phase == PausePhase.BEFORE_PAUSE and self.total_frozen_duration_ms:
            raise ValueError("휴식 전 단계에서는 정지 누적 시간이 0이어야 합니다.")
        return self
