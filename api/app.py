"""
api/app.py — FastAPI 앱 인스턴스 + 세션 미들웨어
"""

import logging
import threading
import time

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from config import CLEANUP_INTERVAL
from api.routes import router
import api.session as session
from timed_exam.services.clock import now_ms

SESSION_COOKIE = "exam_session"

logger = logging.getLogger(__name__)


def close_abandoned_attempts(now: int) -> int:
    """자동 제출 유예까지 넘긴 미제출 응시를 강제 종료. 종료한 수 반환."""
    closed = 0
    for sid, controller in session.open_controllers():
        if controller.is_abandoned(now) and controller.force_close(now).ok:
            logger.info(f"[{sid[:8]}] 방치된 응시 강제 종료")
            closed += 1
    return closed


def create_app() -> FastAPI:
    app = FastAPI(title="Timed Exam Session", docs_url=None, redoc_url=None)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # 세션 미들웨어: 쿠키에서 세션 ID를 읽고, 없으면 새로 발급
    @app.middleware("http")
    async def session_middleware(request: Request, call_next):
        sid = request.cookies.get(SESSION_COOKIE)
        if not sid or session.get_session(sid) is None:
            sid = session.create_session()

        request.state.session_id = sid
        response: Response = await call_next(request)
        response.set_cookie(
            key=SESSION_COOKIE,
            value=sid,
            httponly=True,
            samesite="lax",
            max_age=session.ttl(sid),
        )
        return response

    app.include_router(router)

    @app.get("/health")
    async def health():
        return {"ok": True}

    # 방치된 응시 강제 종료 후 만료 세션 정리
    def _cleanup_loop():
        while True:
            time.sleep(CLEANUP_INTERVAL)
            close_abandoned_attempts(now_ms())
            removed = session.cleanup_expired()
            if removed:
                logger.info(f"만료 세션 {removed}개 정리")

    t = threading.Thread(target=_cleanup_loop, daemon=True)
    t.start()

    return app
