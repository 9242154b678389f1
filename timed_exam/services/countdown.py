"""
services/countdown.py

클라이언트 카운트다운 표시용 보조 함수.
표시 전용. 제출 허용/거부 판단에는 쓰지 않는다 (그건 서버의 SessionController 몫).
"""

from enum import Enum

RUNNING_OUT_MS = 10 * 60 * 1000  # 10분 미만이면 경고
CRITICAL_MS = 5 * 60 * 1000      # 5분 미만이면 위험


class TimeWarning(str, Enum):
    NORMAL = "normal"
    RUNNING_OUT = "running_out"
    CRITICAL = "critical"


def time_warning(remaining_ms: int) -> TimeWarning:
    if remaining_ms < CRITICAL_MS:
        return TimeWarning.CRITICAL
    if remaining_ms < RUNNING_OUT_MS:
        return TimeWarning.RUNNING_OUT
    return TimeWarning.NORMAL


def format_exam_time(ms: int) -> str:
    """밀리초 → "HH:MM:SS". 음수는 0으로 표시."""
    total_seconds = max(0, ms) // 1000
    hours, rest = divmod(total_seconds, 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def format_pause_time(ms: int) -> str:
    """밀리초 → "MM:SS". 60분 이상도 분으로 표시 (예: "60:00")."""
    total_seconds = max(0, ms) // 1000
    minutes, seconds = divmod(total_seconds, 60)
    return f"{minutes:02d}:{seconds:02d}"
