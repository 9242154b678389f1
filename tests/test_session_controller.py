"""Tests for the session controller: end-to-end timing scenarios and rejections."""

import pytest

from timed_exam.models.outcome import Rejection
from timed_exam.models.session_state import PausePhase
from timed_exam.services.progress_alert import AlertLevel

from conftest import START


def _answer_first_wave(controller, now: int) -> None:
    for i in range(controller.layout.midpoint):
        assert controller.record_answer(i, "A", now).ok


class TestScenarios:
    def test_no_pause_finishes_early(self, make_controller) -> None:
        controller = make_controller(allotted=1_800_000, total=10)
        now = START + 1_500_000
        assert controller.remaining_ms(now) == 300_000

        outcome = controller.request_submit(now, is_automatic=False)

        assert outcome.ok
        assert controller.is_terminal()
        assert outcome.attempt.elapsed_ms == 1_500_000
        assert outcome.attempt.total_pause_ms == 0

    def test_full_pause_cycle(self, make_controller, hooks) -> None:
        controller = make_controller(allotted=7_200_000, total=100, midpoint=50)
        assert controller.tick(START + 3_599_999).pause_started is False

        tick = controller.tick(START + 3_600_000)
        assert tick.pause_started is True
        assert controller.current_phase() == PausePhase.DURING_PAUSE
        assert not controller.is_accessible(0)
        assert not controller.is_accessible(50)

        # 휴식 중에는 시간이 멈춘다
        assert controller.remaining_ms(START + 4_000_000) == 3_600_000

        assert controller.end_pause(START + 4_500_000).ok
        assert controller.is_accessible(50)
        assert controller.is_accessible(0)

        now = START + 4_500_000 + 3_000_000
        assert controller.elapsed_ms(now) == 6_600_000
        assert controller.remaining_ms(now) == 600_000
        assert [(old, new) for old, new, _ in hooks.phase_changes] == [
            (PausePhase.BEFORE_PAUSE, PausePhase.DURING_PAUSE),
            (PausePhase.DURING_PAUSE, PausePhase.AFTER_PAUSE),
        ]

    def test_second_wave_locked_until_pause_ends(self, make_controller) -> None:
        controller = make_controller(allotted=7_200_000, total=100, midpoint=50)
        assert controller.record_answer(50, "A", START + 1_000).rejection == Rejection.QUESTION_LOCKED
        controller.tick(START + 3_600_000)
        assert controller.record_answer(50, "A", START + 3_700_000).rejection == Rejection.QUESTION_LOCKED
        controller.end_pause(START + 4_500_000)
        assert controller.record_answer(50, "A", START + 4_600_000).ok

    def test_early_manual_pause(self, make_controller) -> None:
        controller = make_controller(allotted=7_200_000, total=100, midpoint=50)
        _answer_first_wave(controller, START + 2_000_000)
        assert controller.progress_alert_level() == AlertLevel.COMPLETED

        outcome = controller.request_pause(START + 2_400_000)

        assert outcome.ok
        assert outcome.phase == PausePhase.DURING_PAUSE
        assert outcome.pause_started_at == START + 2_400_000
        assert controller.elapsed_ms(START + 2_900_000) == 2_400_000

    def test_late_manual_submit_rejected(self, make_controller) -> None:
        controller = make_controller(allotted=3_600_000, manual_grace=5_000)
        outcome = controller.request_submit(START + 3_606_000, is_automatic=False)
        assert outcome.rejection == Rejection.SUBMISSION_WINDOW_CLOSED
        assert not controller.is_terminal()

    def test_manual_submit_within_grace_accepted(self, make_controller) -> None:
        controller = make_controller(allotted=3_600_000, manual_grace=5_000)
        outcome = controller.request_submit(START + 3_604_000, is_automatic=False)
        assert outcome.ok
        assert outcome.attempt.overtime_ms == 4_000


class TestTick:
    def test_auto_pause_fires_exactly_once(self, make_controller, hooks) -> None:
        controller = make_controller(allotted=7_200_000)
        started = [controller.tick(START + 3_600_000 + i * 1_000).pause_started for i in range(50)]
        assert started.count(True) == 1
        assert len(hooks.phase_changes) == 1
        assert controller.pauses.record.pause_started_at == START + 3_600_000

    def test_deadline_signalled_once(self, make_controller, hooks) -> None:
        controller = make_controller(allotted=1_000, total=2, pause=100)
        controller.tick(START + 600)
        controller.end_pause(START + 700)

        assert controller.tick(START + 1_099).deadline_reached is False
        first = controller.tick(START + 1_100)
        assert first.deadline_reached is True
        assert first.remaining_ms == 0
        assert controller.tick(START + 1_200).deadline_reached is False
        assert hooks.deadlines == [START + 1_100]

    def test_automatic_submit_after_deadline(self, make_controller, hooks) -> None:
        controller = make_controller(allotted=1_000, total=2, pause=100, auto_grace=30_000)
        controller.tick(START + 500)
        controller.end_pause(START + 500)
        assert controller.tick(START + 1_000).deadline_reached

        outcome = controller.request_submit(START + 21_000, is_automatic=True)

        assert outcome.ok
        assert outcome.attempt.is_automatic
        assert outcome.attempt.overtime_ms == 20_000
        assert hooks.attempts == [outcome.attempt]

    def test_manual_submit_at_same_time_rejected(self, make_controller) -> None:
        controller = make_controller(allotted=1_000, total=2, pause=100)
        controller.tick(START + 500)
        controller.end_pause(START + 500)
        assert controller.request_submit(START + 21_000).rejection == Rejection.SUBMISSION_WINDOW_CLOSED


class TestRecordAnswer:
    def test_overwrite_and_alert(self, make_controller, hooks) -> None:
        controller = make_controller(total=20, midpoint=10)
        assert controller.progress_alert_level() == AlertLevel.APPROACHING
        controller.record_answer(0, "A", START + 10)
        outcome = controller.record_answer(0, "B", START + 20)
        assert outcome.first_wave_remaining == 9
        assert controller.ledger.get("q0") == "B"
        assert len(hooks.answers) == 2

    @pytest.mark.parametrize("index", [-1, 20, 1_000])
    def test_out_of_range_is_locked(self, make_controller, index: int) -> None:
        controller = make_controller(total=20, midpoint=10)
        assert controller.record_answer(index, "A", START).rejection == Rejection.QUESTION_LOCKED
        assert not controller.is_accessible(index)

    def test_rejected_answer_leaves_ledger(self, make_controller) -> None:
        controller = make_controller(total=20, midpoint=10)
        controller.record_answer(15, "A", START)
        assert len(controller.ledger) == 0

    def test_crossing_half_time_locks_before_write(self, make_controller) -> None:
        controller = make_controller(allotted=7_200_000, total=100)
        outcome = controller.record_answer(0, "A", START + 3_600_000)
        assert outcome.rejection == Rejection.QUESTION_LOCKED
        assert controller.current_phase() == PausePhase.DURING_PAUSE

    def test_answer_after_deadline_rejected(self, make_controller) -> None:
        controller = make_controller(allotted=1_000, total=2, pause=100)
        controller.tick(START + 500)
        controller.end_pause(START + 500)
        assert controller.record_answer(0, "A", START + 6_000).ok
        outcome = controller.record_answer(1, "A", START + 6_001)
        assert outcome.rejection == Rejection.SUBMISSION_WINDOW_CLOSED


class TestRequestPause:
    def test_not_eligible_leaves_state(self, make_controller) -> None:
        controller = make_controller(total=100)
        controller.record_answer(0, "A", START)
        record = controller.pauses.record

        outcome = controller.request_pause(START + 1_000)

        assert outcome.rejection == Rejection.PAUSE_NOT_ELIGIBLE
        assert controller.pauses.record is record
        assert controller.current_phase() == PausePhase.BEFORE_PAUSE

    def test_auto_condition_starts_pause(self, make_controller) -> None:
        controller = make_controller(allotted=7_200_000, total=100)
        outcome = controller.request_pause(START + 4_000_000)
        assert outcome.ok
        assert controller.current_phase() == PausePhase.DURING_PAUSE

    def test_second_request_rejected(self, make_controller) -> None:
        controller = make_controller(total=4)
        _answer_first_wave(controller, START)
        assert controller.request_pause(START + 10).ok
        assert controller.request_pause(START + 20).rejection == Rejection.PAUSE_NOT_ELIGIBLE
        controller.end_pause(START + 30)
        assert controller.request_pause(START + 40).rejection == Rejection.PAUSE_NOT_ELIGIBLE

    def test_end_pause_when_not_paused(self, make_controller) -> None:
        controller = make_controller()
        assert controller.end_pause(START).rejection == Rejection.PAUSE_NOT_ACTIVE


class TestSubmit:
    def test_submit_during_pause_closes_pause(self, make_controller, hooks) -> None:
        controller = make_controller(total=4)
        _answer_first_wave(controller, START + 100)
        controller.request_pause(START + 1_000)

        outcome = controller.request_submit(START + 61_000)

        assert outcome.ok
        assert outcome.attempt.elapsed_ms == 1_000
        assert outcome.attempt.total_pause_ms == 60_000
        assert controller.current_phase() == PausePhase.AFTER_PAUSE
        assert hooks.phase_changes[-1][1] == PausePhase.AFTER_PAUSE

    def test_answers_are_captured(self, make_controller) -> None:
        controller = make_controller(total=4)
        controller.record_answer(1, "C", START + 5)
        outcome = controller.request_submit(START + 10)
        assert outcome.attempt.answers == {"q1": "C"}

    def test_everything_rejected_after_submit(self, make_controller) -> None:
        controller = make_controller(total=4)
        controller.request_submit(START + 10)
        finalized = Rejection.SESSION_ALREADY_FINALIZED
        assert controller.tick(START + 20).rejection == finalized
        assert controller.record_answer(0, "A", START + 20).rejection == finalized
        assert controller.request_pause(START + 20).rejection == finalized
        assert controller.end_pause(START + 20).rejection == finalized
        assert controller.request_submit(START + 20).rejection == finalized
        assert controller.request_submit(START + 20, is_automatic=True).rejection == finalized
        assert controller.attempt.submitted_at == START + 10


class TestSnapshot:
    def test_before_pause(self, make_controller) -> None:
        controller = make_controller(allotted=7_200_000, total=100)
        controller.record_answer(3, "A", START + 10)
        snap = controller.snapshot(START + 600_000)
        assert snap.phase == PausePhase.BEFORE_PAUSE
        assert snap.remaining_ms == 6_600_000
        assert snap.answered_count == 1
        assert snap.first_wave_remaining == 49
        assert snap.alert_level == AlertLevel.NORMAL
        assert snap.show_pause_alert is False
        assert snap.accessible_range == (0, 49)
        assert snap.is_terminal is False

    def test_during_pause(self, make_controller) -> None:
        controller = make_controller(allotted=7_200_000, total=100, pause=900_000)
        controller.tick(START + 3_600_000)
        snap = controller.snapshot(START + 3_900_000)
        assert snap.phase == PausePhase.DURING_PAUSE
        assert snap.accessible_range is None
        assert snap.pause_remaining_ms == 600_000
        assert snap.can_take_early_pause is False


class TestSync:
    def test_read_path_starts_auto_pause(self, make_controller, hooks) -> None:
        controller = make_controller(allotted=60_000, total=4)
        assert controller.sync(START + 29_999) == PausePhase.BEFORE_PAUSE
        assert controller.is_accessible(0)

        assert controller.sync(START + 30_000) == PausePhase.DURING_PAUSE
        assert controller.is_accessible(0) is False
        assert controller.remaining_ms(START + 40_000) == 30_000
        assert hooks.phase_changes == [(PausePhase.BEFORE_PAUSE, PausePhase.DURING_PAUSE, START + 30_000)]

    def test_inert_after_submit(self, make_controller) -> None:
        controller = make_controller(allotted=60_000, total=4)
        assert controller.request_submit(START + 1_000).ok
        assert controller.sync(START + 40_000) == PausePhase.BEFORE_PAUSE


class TestForceClose:
    def test_missed_auto_grace_is_force_closed(self, make_controller, hooks) -> None:
        controller = make_controller(allotted=1_000, total=2, auto_grace=30_000)
        assert controller.record_answer(0, "A", START + 100).ok
        assert controller.tick(START + 40_000).deadline_reached

        late = controller.request_submit(START + 40_000, is_automatic=True)
        assert late.rejection == Rejection.SUBMISSION_WINDOW_CLOSED
        assert not controller.is_terminal()
        assert controller.is_abandoned(START + 40_000)

        outcome = controller.force_close(START + 40_000)

        assert outcome.ok
        attempt = outcome.attempt
        assert attempt.is_forced and attempt.is_automatic
        assert attempt.answers == {"q0": "A"}
        assert attempt.elapsed_ms == 40_000
        assert attempt.overtime_ms == 39_000
        assert attempt.total_pause_ms == 0
        assert controller.is_terminal()
        assert controller.current_phase() == PausePhase.AFTER_PAUSE
        assert hooks.attempts == [attempt]

        assert controller.force_close(START + 50_000).rejection == Rejection.SESSION_ALREADY_FINALIZED
        assert controller.is_abandoned(START + 50_000) is False

    def test_overdue_pause_ends_at_schedule(self, make_controller, hooks) -> None:
        controller = make_controller(allotted=60_000, total=4, pause=10_000, auto_grace=30_000)
        controller.tick(START + 30_000)

        assert controller.is_abandoned(START + 100_000) is False
        assert controller.is_abandoned(START + 100_001) is True

        attempt = controller.force_close(START + 100_001).attempt
        assert attempt.total_pause_ms == 10_000
        assert attempt.elapsed_ms == 90_001
        assert attempt.overtime_ms == 30_001
        assert controller.pauses.record.pause_ended_at == START + 40_000
        assert controller.pauses.record.is_pause_cut_short is False
        assert hooks.phase_changes[-1] == (PausePhase.DURING_PAUSE, PausePhase.AFTER_PAUSE, START + 40_000)

    def test_running_attempt_is_not_abandoned(self, make_controller) -> None:
        controller = make_controller()
        assert controller.is_abandoned(START + 1_000) is False
