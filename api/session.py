"""
api/session.py — 멀티유저 인메모리 세션 (쿠키 기반)

각 응시자에게 UUID 세션 ID를 발급하고, 세션별로 독립된 상태를 유지.
응시 1건당 SessionController 하나가 여기 보관된다 (서버 측 단일 권위 인스턴스).

만료 규칙:
    - 응시가 없는 세션은 마지막 접근 후 SESSION_TTL이 지나면 만료.
    - 응시가 있으면 TTL은 시험 시간 + 휴식 시간 + 자동 제출 유예보다 짧아지지 않는다.
    - 제출되지 않은 응시는 TTL이 지나도 지우지 않는다. 방치된 응시는 정리 스레드가
      먼저 강제 종료한다 (api/app.py).
"""

import math
import threading
import time
import uuid
from typing import Any

from config import SESSION_TTL

_lock = threading.Lock()
_sessions: dict[str, dict[str, Any]] = {}
_timestamps: dict[str, float] = {}


def _new_state() -> dict[str, Any]:
    return {
        "questions": [],
        "controller": None,
    }


def _ttl_of(state: dict[str, Any]) -> int:
    controller = state.get("controller")
    if controller is None:
        return SESSION_TTL
    cfg = controller.config
    attempt_ms = cfg.allotted_duration_ms + cfg.pause_duration_ms + cfg.auto_submit_grace_ms
    return max(SESSION_TTL, math.ceil(attempt_ms / 1000))


def _is_evictable(sid: str, now: float) -> bool:
    state = _sessions[sid]
    if now - _timestamps[sid] <= _ttl_of(state):
        return False
    controller = state.get("controller")
    return controller is None or controller.is_terminal()


def create_session() -> str:
    """새 세션을 생성하고 세션 ID를 반환."""
    sid = uuid.uuid4().hex
    with _lock:
        _sessions[sid] = _new_state()
        _timestamps[sid] = time.time()
    return sid


def get_session(sid: str) -> dict[str, Any] | None:
    """세션 ID로 세션 데이터를 가져옴. 만료되었거나 없으면 None."""
    with _lock:
        if sid not in _sessions:
            return None
        if _is_evictable(sid, time.time()):
            del _sessions[sid]
            del _timestamps[sid]
            return None
        _timestamps[sid] = time.time()  # 접근 시 갱신
        return _sessions[sid]


def ttl(sid: str) -> int:
    """세션 쿠키 max_age (초). 없는 세션이면 기본 TTL."""
    with _lock:
        state = _sessions.get(sid)
        return SESSION_TTL if state is None else _ttl_of(state)


def get(sid: str, key: str, default=None):
    """세션에서 값 읽기."""
    session = get_session(sid)
    if session is None:
        return default
    return session.get(key, default)


def put(sid: str, key: str, value) -> None:
    """세션에 값 쓰기."""
    with _lock:
        if sid in _sessions:
            _sessions[sid][key] = value
            _timestamps[sid] = time.time()


def reset(sid: str) -> None:
    """응시 상태 초기화."""
    with _lock:
        if sid in _sessions:
            _sessions[sid] = _new_state()
            _timestamps[sid] = time.time()


def open_controllers() -> list[tuple[str, Any]]:
    """제출되지 않은 응시 목록 (sid, controller). 접근 시각은 갱신하지 않는다."""
    with _lock:
        return [
            (sid, state["controller"])
            for sid, state in _sessions.items()
            if state.get("controller") is not None and not state["controller"].is_terminal()
        ]


def cleanup_expired() -> int:
    """만료된 세션을 정리. 제거된 수 반환."""
    now = time.time()
    removed = 0
    with _lock:
        expired = [sid for sid in _sessions if _is_evictable(sid, now)]
        for sid in expired:
            del _sessions[sid]
            del _timestamps[sid]
            removed += 1
    return removed
