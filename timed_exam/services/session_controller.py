"""
services/session_controller.py

시험 응시 1건을 관장하는 세션 컨트롤러.
UI/API 계층은 이벤트(tick, 답안 기록, 휴식 요청/종료, 제출 요청)로 구동하고
현재 상태를 질의한다. 시계는 읽지 않는다. 모든 호출에 now를 명시적으로 넘긴다.

상태 전이:
    Active(BEFORE_PAUSE) → Active(DURING_PAUSE) → Active(AFTER_PAUSE) → Submitted
Submitted는 종착 상태. 이후 모든 호출은 SESSION_ALREADY_FINALIZED.

시간에 따른 전이(자동 휴식)는 tick뿐 아니라 답안 기록/휴식 요청 직전에도 평가한다.
조회 경로는 sync(now)로 같은 평가를 거친다.
서버는 클라이언트의 tick을 믿지 않고 자기 시계로 매번 다시 계산한다.

자동 제출 유예까지 넘겨 방치된 응시는 force_close(now)로 서버가 닫는다.
"""

import logging
from typing import Optional, Tuple

from pydantic import BaseModel

from timed_exam.models.exam_layout import AnswerLedger, ExamLayout
from timed_exam.models.outcome import (
    Outcome, PauseOutcome, Rejection, SubmitOutcome, SubmittedAttempt, TickOutcome,
)
from timed_exam.models.session_state import ExamConfig, PausePhase, PauseRecord
from timed_exam.services import progress_alert, wave_guard
from timed_exam.services.clock import ClockReconciler
from timed_exam.services.countdown import TimeWarning, time_warning
from timed_exam.services.hooks import SessionHooks
from timed_exam.services.pause_manager import PauseManager
from timed_exam.services.progress_alert import AlertLevel

logger = logging.getLogger(__name__)


class AnswerOutcome(Outcome):
    question_id: Optional[str] = None
    alert_level: Optional[AlertLevel] = None
    first_wave_remaining: int = 0


class SessionSnapshot(BaseModel):
    """API 계층에 내려줄 파생 상태 일체."""

    phase: PausePhase
    is_terminal: bool
    elapsed_ms: int
    remaining_ms: int
    time_warning: TimeWarning
    pause_remaining_ms: int
    pause_duration_ms: int
    total_questions: int
    midpoint: int
    answered_count: int
    first_wave_remaining: int
    alert_level: AlertLevel
    show_pause_alert: bool
    can_take_early_pause: bool
    accessible_range: Optional[Tuple[int, int]] = None


class SessionController:
    def __init__(
        self,
        config: ExamConfig,
        layout: ExamLayout,
        hooks: Optional[SessionHooks] = None,
        ledger: Optional[AnswerLedger] = None,
        pause_record: Optional[PauseRecord] = None,
    ) -> None:
        self.config = config
        self.layout = layout
        self.hooks = hooks or SessionHooks()
        self.ledger = ledger or AnswerLedger()
        self.clock = ClockReconciler(config.clock)
        self.pauses = PauseManager(config.pause_duration_ms, pause_record)
        self.attempt: Optional[SubmittedAttempt] = None
        self._deadline_signalled = False

    # ── 질의 ────────────────────────────────────────────────────────────────

    def current_phase(self) -> PausePhase:
        return self.pauses.phase

    def is_terminal(self) -> bool:
        return self.attempt is not None

    def elapsed_ms(self, now: int) -> int:
        return self.clock.elapsed(now, self.pauses.record)

    def remaining_ms(self, now: int) -> int:
        return self.clock.remaining(now, self.pauses.record)

    def pause_remaining_ms(self, now: int) -> int:
        return self.pauses.pause_remaining_ms(now)

    def is_accessible(self, index: int) -> bool:
        if not self.layout.contains_index(index):
            return False
        return wave_guard.is_accessible(index, self.current_phase(), self.layout.midpoint)

    def first_wave_remaining(self) -> int:
        return progress_alert.remaining_in_wave(self.layout, self.ledger)

    def progress_alert_level(self) -> AlertLevel:
        return progress_alert.classify(self.first_wave_remaining())

    def snapshot(self, now: int) -> SessionSnapshot:
        phase = self.current_phase()
        remaining = self.remaining_ms(now)
        wave_remaining = self.first_wave_remaining()
        return SessionSnapshot(
            phase=phase,
            is_terminal=self.is_terminal(),
            elapsed_ms=self.elapsed_ms(now),
            remaining_ms=remaining,
            time_warning=time_warning(remaining),
            pause_remaining_ms=self.pause_remaining_ms(now),
            pause_duration_ms=self.config.pause_duration_ms,
            total_questions=self.layout.total,
            midpoint=self.layout.midpoint,
            answered_count=len(self.ledger),
            first_wave_remaining=wave_remaining,
            alert_level=progress_alert.classify(wave_remaining),
            show_pause_alert=phase == PausePhase.BEFORE_PAUSE and progress_alert.should_show_alert(wave_remaining),
            can_take_early_pause=progress_alert.can_take_early_pause(phase, wave_remaining),
            accessible_range=wave_guard.accessible_range(phase, self.layout.midpoint, self.layout.total),
        )

    # ── 이벤트 ──────────────────────────────────────────────────────────────

    def _sync(self, now: int) -> bool:
        """자동 휴식 조건 평가. 이번에 휴식이 시작되었으면 True."""
        old = self.current_phase()
        started = self.pauses.check_auto_trigger(now, self.elapsed_ms(now), self.clock.allotted_ms)
        if started:
            self.hooks.phase_changed(old, self.current_phase(), now)
        return started

    def sync(self, now: int) -> PausePhase:
        """
        서버 시계 기준으로 시간에 따른 전이를 반영하고 현재 단계를 돌려준다.
        조회(문제 열람, 상태 조회) 직전에 호출해서 tick이 없어도 자동 휴식이 늦지 않게 한다.
        """
        if not self.is_terminal():
            self._sync(now)
        return self.current_phase()

    def tick(self, now: int) -> TickOutcome:
        if self.is_terminal():
            return TickOutcome(rejection=Rejection.SESSION_ALREADY_FINALIZED)

        pause_started = self._sync(now)
        remaining = self.remaining_ms(now)

        deadline_reached = remaining == 0 and not self._deadline_signalled
        if deadline_reached:
            self._deadline_signalled = True
            logger.info(f"제한 시간 도달, 자동 제출 트리거 (now={now})")
            self.hooks.deadline_reached(now)

        return TickOutcome(
            phase=self.current_phase(),
            remaining_ms=remaining,
            pause_started=pause_started,
            deadline_reached=deadline_reached,
        )

    def record_answer(self, index: int, value: str, now: int) -> AnswerOutcome:
        if self.is_terminal():
            return AnswerOutcome(rejection=Rejection.SESSION_ALREADY_FINALIZED)

        self._sync(now)
        if not self.is_accessible(index):
            logger.info(f"잠긴 문제 응답 거부: Q{index + 1} ({self.current_phase().value})")
            return AnswerOutcome(rejection=Rejection.QUESTION_LOCKED)
        if self.clock.is_expired(now, self.pauses.record, self.config.manual_submit_grace_ms):
            logger.info(f"제한 시간 이후 응답 거부: Q{index + 1}")
            return AnswerOutcome(rejection=Rejection.SUBMISSION_WINDOW_CLOSED)

        question_id = self.layout.question_ids[index]
        self.ledger.record(question_id, value)
        self.hooks.answer_recorded(question_id, value, now)

        wave_remaining = self.first_wave_remaining()
        return AnswerOutcome(
            question_id=question_id,
            alert_level=progress_alert.classify(wave_remaining),
            first_wave_remaining=wave_remaining,
        )

    def _pause_outcome(self, rejection: Optional[Rejection] = None) -> PauseOutcome:
        record = self.pauses.record
        return PauseOutcome(
            rejection=rejection,
            phase=record.phase,
            pause_started_at=record.pause_started_at,
            pause_duration_ms=self.config.pause_duration_ms,
            frozen_duration_ms=record.total_frozen_duration_ms,
            is_pause_cut_short=record.is_pause_cut_short,
        )

    def request_pause(self, now: int) -> PauseOutcome:
        """
        조기 휴식 요청. 1차 웨이브를 모두 풀었으면 허용.
        자동 휴식 조건이 이미 충족된 상태라면 요청과 무관하게 휴식이 시작된다.
        """
        if self.is_terminal():
            return PauseOutcome(rejection=Rejection.SESSION_ALREADY_FINALIZED)

        if self._sync(now):
            return self._pause_outcome()

        old = self.current_phase()
        rejection = self.pauses.request_early(now, self.first_wave_remaining())
        if rejection is not None:
            logger.info(f"휴식 요청 거부 ({old.value}, 1차 웨이브 남은 문제 {self.first_wave_remaining()}개)")
            return self._pause_outcome(rejection)

        self.hooks.phase_changed(old, self.current_phase(), now)
        return self._pause_outcome()

    def end_pause(self, now: int) -> PauseOutcome:
        """휴식 종료: 설정된 휴식 시간이 끝났거나 조기 재개."""
        if self.is_terminal():
            return PauseOutcome(rejection=Rejection.SESSION_ALREADY_FINALIZED)

        old = self.current_phase()
        rejection = self.pauses.end(now)
        if rejection is not None:
            return self._pause_outcome(rejection)

        self.hooks.phase_changed(old, self.current_phase(), now)
        return self._pause_outcome()

    def request_submit(self, now: int, is_automatic: bool = False) -> SubmitOutcome:
        """
        제출 요청. 자동 제출은 auto_submit_grace_ms, 수동 제출은 manual_submit_grace_ms 유예를 적용.
        휴식 중 제출이면 now 시점에 휴식을 닫고 제출한다.
        """
        if self.is_terminal():
            return SubmitOutcome(rejection=Rejection.SESSION_ALREADY_FINALIZED)

        grace_ms = self.config.auto_submit_grace_ms if is_automatic else self.config.manual_submit_grace_ms
        if self.clock.is_expired(now, self.pauses.record, grace_ms):
            logger.info(
                f"제출 거부: 유예 시간 초과 (초과 {self.clock.overtime(now, self.pauses.record)}ms, "
                f"유예 {grace_ms}ms, 자동: {is_automatic})"
            )
            return SubmitOutcome(rejection=Rejection.SUBMISSION_WINDOW_CLOSED)

        if self.current_phase() == PausePhase.DURING_PAUSE:
            self._close_pause(now)

        overtime = self.clock.overtime(now, self.pauses.record)
        if is_automatic and overtime:
            logger.warning(f"자동 제출 지연: 제한 시간 {overtime}ms 초과 (유예 범위 내)")
        return self._finalize(now, is_automatic=is_automatic)

    def is_abandoned(self, now: int) -> bool:
        """
        자동 제출 유예까지 지났는데 아직 제출되지 않은 응시인지.
        예정 시간을 넘긴 휴식은 예정 종료 시각에 끝난 것으로 계산한다.
        """
        if self.is_terminal():
            return False
        return self.clock.is_expired(now, self.pauses.settled(now), self.config.auto_submit_grace_ms)

    def force_close(self, now: int) -> SubmitOutcome:
        """
        유예와 무관하게 응시를 종료하고 지금까지의 답안으로 제출 기록을 남긴다.
        방치된 응시를 서버가 정리할 때 쓴다. 열린 휴식은 now와 예정 종료 시각 중 이른 쪽에서 닫는다.
        """
        if self.is_terminal():
            return SubmitOutcome(rejection=Rejection.SESSION_ALREADY_FINALIZED)

        if self.current_phase() == PausePhase.DURING_PAUSE:
            self._close_pause(min(now, self.pauses.scheduled_end()))

        logger.warning(f"방치된 응시 강제 종료 (제한 시간 {self.clock.overtime(now, self.pauses.record)}ms 초과)")
        return self._finalize(now, is_automatic=True, is_forced=True)

    def _close_pause(self, at: int) -> None:
        self.pauses.end(at)
        self.hooks.phase_changed(PausePhase.DURING_PAUSE, self.current_phase(), at)

    def _finalize(self, now: int, is_automatic: bool, is_forced: bool = False) -> SubmitOutcome:
        record = self.pauses.record
        self.attempt = SubmittedAttempt(
            answers=self.ledger.as_dict(),
            submitted_at=now,
            elapsed_ms=self.clock.elapsed(now, record),
            total_pause_ms=record.total_frozen_duration_ms,
            is_automatic=is_automatic,
            is_forced=is_forced,
            overtime_ms=self.clock.overtime(now, record),
        )
        logger.info(
            f"시험 제출 완료 (응답 {len(self.ledger)}/{self.layout.total}, "
            f"경과 {self.attempt.elapsed_ms}ms, 자동: {is_automatic}, 강제: {is_forced})"
        )
        self.hooks.attempt_submitted(self.attempt)
        return SubmitOutcome(attempt=self.attempt)
