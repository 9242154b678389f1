"""
api/routes.py — FastAPI 엔드포인트

모든 판단(휴식 단계, 문제 잠금, 마감)은 서버 시계(now_ms)로 다시 계산한다.
클라이언트가 보낸 시각/단계 정보는 받지도 않는다. /api/tick도 카운트다운 표시용 권고일 뿐.
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

import config
import api.session as session

from timed_exam.models.exam_layout import ExamLayout
from timed_exam.models.outcome import Outcome, Rejection, SubmittedAttempt
from timed_exam.models.question_model import Question
from timed_exam.models.session_state import ExamConfig, PausePhase
from timed_exam.services import wave_guard
from timed_exam.services.clock import now_ms
from timed_exam.services.countdown import format_exam_time, format_pause_time
from timed_exam.services.exam_service import (
    calculate_score, calculate_wave_scores, count_correct, get_incorrect_questions, is_passed,
)
from timed_exam.services.hooks import SessionHooks
from timed_exam.services.session_controller import SessionController

router = APIRouter()
logger = logging.getLogger(__name__)

REJECTION_STATUS = {
    Rejection.QUESTION_LOCKED: 403,
    Rejection.PAUSE_NOT_ELIGIBLE: 409,
    Rejection.PAUSE_NOT_ACTIVE: 409,
    Rejection.SESSION_ALREADY_FINALIZED: 409,
    Rejection.SUBMISSION_WINDOW_CLOSED: 400,
}

# ── Pydantic request bodies ──────────────────────────────────────────────────

class StartExamBody(BaseModel):
    questions: list[Question] = Field(..., min_length=1)
    allotted_duration_ms: Optional[int] = None
    pause_duration_ms: Optional[int] = None
    midpoint: Optional[int] = None

class SaveAnswerBody(BaseModel):
    index: int
    answer: str = Field(..., min_length=1)

class SubmitBody(BaseModel):
    is_automatic: bool = False


# ── 헬퍼 ─────────────────────────────────────────────────────────────────────

class StoreHooks(SessionHooks):
    """세션별 로그를 남기는 훅. 제출 기록은 컨트롤러(controller.attempt)가 보관한다."""

    def __init__(self, sid: str) -> None:
        self.sid = sid

    def phase_changed(self, old: PausePhase, new: PausePhase, now: int) -> None:
        logger.info(f"[{self.sid[:8]}] 휴식 단계 변경: {old.value} → {new.value}")

    def attempt_submitted(self, attempt: SubmittedAttempt) -> None:
        logger.info(
            f"[{self.sid[:8]}] 응시 종료: 응답 {len(attempt.answers)}개, "
            f"자동 {attempt.is_automatic}, 강제 {attempt.is_forced}"
        )


def _sid(request: Request) -> str:
    return request.state.session_id


def _controller(request: Request) -> SessionController:
    controller: SessionController = session.get(_sid(request), "controller")
    if controller is None:
        raise HTTPException(status_code=404, detail="시험 세션이 없습니다.")
    return controller


def _raise_if_rejected(outcome: Outcome) -> None:
    if not outcome.ok:
        raise HTTPException(status_code=REJECTION_STATUS[outcome.rejection], detail=outcome.message)


def _question_to_dict(q: Question) -> dict:
    # 정답/해설은 제출 전에는 내려주지 않는다
    return {
        "id": q.id,
        "question_text": q.question_text,
        "options": q.options,
    }


# ── 엔드포인트 ───────────────────────────────────────────────────────────────

@router.post("/api/start-exam")
async def start_exam(request: Request, body: StartExamBody):
    sid = _sid(request)
    current: SessionController = session.get(sid, "controller")
    if current is not None and not current.is_terminal():
        raise HTTPException(status_code=409, detail="이미 진행 중인 시험이 있습니다.")

    try:
        layout = ExamLayout.split_in_half([q.id for q in body.questions], body.midpoint)
        exam_config = ExamConfig(
            server_start_time=now_ms(),
            allotted_duration_ms=config.DEFAULT_ALLOTTED_MS if body.allotted_duration_ms is None else body.allotted_duration_ms,
            pause_duration_ms=config.DEFAULT_PAUSE_MS if body.pause_duration_ms is None else body.pause_duration_ms,
            auto_submit_grace_ms=config.AUTO_SUBMIT_GRACE_MS,
            manual_submit_grace_ms=config.MANUAL_SUBMIT_GRACE_MS,
        )
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    session.reset(sid)
    session.put(sid, "questions", body.questions)
    session.put(sid, "controller", SessionController(exam_config, layout, hooks=StoreHooks(sid)))
    logger.info(f"[{sid[:8]}] 시험 시작: 문제 {layout.total}개, midpoint {layout.midpoint}")
    return {
        "ok": True,
        "total": layout.total,
        "midpoint": layout.midpoint,
        "server_start_time": exam_config.server_start_time,
        "allotted_duration_ms": exam_config.allotted_duration_ms,
    }


@router.get("/api/exam-state")
async def get_exam_state(request: Request):
    controller = _controller(request)
    now = now_ms()
    controller.sync(now)
    snapshot = controller.snapshot(now)
    data = snapshot.model_dump(mode="json")
    data["remaining_display"] = format_exam_time(snapshot.remaining_ms)
    return data


@router.get("/api/question/{index}")
async def get_question(request: Request, index: int):
    controller = _controller(request)
    questions: list[Question] = session.get(_sid(request), "questions", [])
    if not controller.layout.contains_index(index):
        raise HTTPException(status_code=404, detail="문제를 찾을 수 없습니다.")

    phase = controller.sync(now_ms())
    allowed, reason = wave_guard.access_decision(index, phase, controller.layout.midpoint)
    if not allowed:
        raise HTTPException(status_code=403, detail=reason)

    q = questions[index]
    d = _question_to_dict(q)
    d.update({
        "saved_answer": controller.ledger.get(q.id) or "",
        "index": index,
        "total": controller.layout.total,
    })
    return d


@router.post("/api/save-answer")
async def save_answer(request: Request, body: SaveAnswerBody):
    controller = _controller(request)
    outcome = controller.record_answer(body.index, body.answer, now_ms())
    _raise_if_rejected(outcome)
    return {
        "ok": True,
        "answered_count": len(controller.ledger),
        "first_wave_remaining": outcome.first_wave_remaining,
        "alert_level": outcome.alert_level.value,
    }


@router.post("/api/tick")
async def tick(request: Request):
    controller = _controller(request)
    outcome = controller.tick(now_ms())
    _raise_if_rejected(outcome)
    return {
        "phase": outcome.phase.value,
        "remaining_ms": outcome.remaining_ms,
        "remaining_display": format_exam_time(outcome.remaining_ms),
        "pause_started": outcome.pause_started,
        "deadline_reached": outcome.deadline_reached,
    }


@router.post("/api/pause/start")
async def start_pause(request: Request):
    controller = _controller(request)
    outcome = controller.request_pause(now_ms())
    _raise_if_rejected(outcome)
    return {
        "ok": True,
        "pause_started_at": outcome.pause_started_at,
        "pause_duration_ms": outcome.pause_duration_ms,
    }


@router.post("/api/pause/end")
async def end_pause(request: Request):
    controller = _controller(request)
    outcome = controller.end_pause(now_ms())
    _raise_if_rejected(outcome)
    return {
        "ok": True,
        "total_pause_ms": outcome.frozen_duration_ms,
        "is_pause_cut_short": outcome.is_pause_cut_short,
    }


@router.get("/api/pause-status")
async def pause_status(request: Request):
    controller = _controller(request)
    now = now_ms()
    controller.sync(now)
    record = controller.pauses.record
    remaining = controller.pause_remaining_ms(now)
    return {
        "phase": record.phase.value,
        "pause_duration_ms": controller.config.pause_duration_ms,
        "pause_started_at": record.pause_started_at,
        "pause_ended_at": record.pause_ended_at,
        "is_pause_cut_short": record.is_pause_cut_short,
        "pause_remaining_ms": remaining,
        "pause_remaining_display": format_pause_time(remaining),
        "total_questions": controller.layout.total,
        "midpoint": controller.layout.midpoint,
        "questions_before_pause": len(controller.layout.first_wave),
        "questions_after_pause": len(controller.layout.second_wave),
    }


@router.post("/api/submit-exam")
async def submit_exam(request: Request, body: SubmitBody):
    sid = _sid(request)
    controller = _controller(request)
    outcome = controller.request_submit(now_ms(), is_automatic=body.is_automatic)
    _raise_if_rejected(outcome)

    questions: list[Question] = session.get(sid, "questions", [])
    score = calculate_score(questions, outcome.attempt.answers)
    return {"score": score, "ok": True, "elapsed_ms": outcome.attempt.elapsed_ms}


@router.get("/api/results")
async def get_results(request: Request):
    sid = _sid(request)
    controller = _controller(request)
    if not controller.is_terminal():
        raise HTTPException(status_code=400, detail="시험이 아직 제출되지 않았습니다.")

    # 서버가 강제 종료한 응시도 같은 경로로 채점한다
    attempt = controller.attempt
    questions: list[Question] = session.get(sid, "questions", [])
    incorrect = get_incorrect_questions(questions, attempt.answers)
    score = calculate_score(questions, attempt.answers)

    incorrect_data = []
    for q in incorrect:
        d = _question_to_dict(q)
        d.update({
            "answer": q.answer,
            "explanation": q.explanation,
            "user_answer": attempt.answers.get(q.id, ""),
        })
        incorrect_data.append(d)

    return {
        "score": score,
        "passed": is_passed(score, config.PASS_SCORE),
        "total": len(questions),
        "correct_count": count_correct(questions, attempt.answers),
        "incorrect_count": len(incorrect),
        "unanswered_count": len(questions) - len(attempt.answers),
        "elapsed_ms": attempt.elapsed_ms,
        "total_pause_ms": attempt.total_pause_ms,
        "is_automatic": attempt.is_automatic,
        "is_forced": attempt.is_forced,
        "wave_scores": calculate_wave_scores(controller.layout, questions, attempt.answers),
        "incorrect_questions": incorrect_data,
    }


@router.post("/api/reset")
async def reset_session(request: Request):
    session.reset(_sid(request))
    return {"ok": True}
