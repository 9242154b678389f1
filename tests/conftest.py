import pytest

from timed_exam.models.exam_layout import ExamLayout
from timed_exam.models.session_state import ExamConfig
from timed_exam.services.hooks import SessionHooks
from timed_exam.services.session_controller import SessionController

START = 1_000_000


class RecordingHooks(SessionHooks):
    def __init__(self) -> None:
        self.answers = []
        self.phase_changes = []
        self.deadlines = []
        self.attempts = []

    def answer_recorded(self, question_id, value, now):
        self.answers.append((question_id, value, now))

    def phase_changed(self, old, new, now):
        self.phase_changes.append((old, new, now))

    def deadline_reached(self, now):
        self.deadlines.append(now)

    def attempt_submitted(self, attempt):
        self.attempts.append(attempt)


@pytest.fixture
def hooks():
    return RecordingHooks()


@pytest.fixture
def make_controller(hooks):
    def _make(
        allotted=7_200_000,
        total=100,
        midpoint=None,
        pause=900_000,
        auto_grace=30_000,
        manual_grace=5_000,
    ) -> SessionController:
        config = ExamConfig(
            server_start_time=START,
            allotted_duration_ms=allotted,
            pause_duration_ms=pause,
            auto_submit_grace_ms=auto_grace,
            manual_submit_grace_ms=manual_grace,
        )
        layout = ExamLayout.split_in_half([f"q{i}" for i in range(total)], midpoint)
        return SessionController(config, layout, hooks=hooks)

    return _make
