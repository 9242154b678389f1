import os

# 기본 디렉토리 설정
BASE_DIR = os.path.dirname(os.path.abspath(__file__))

# 경로 설정
LOG_FILE = os.getenv("LOG_FILE", os.path.join(BASE_DIR, "launch.log"))

# 서버 설정
DEFAULT_HOST = os.getenv("HOST", "127.0.0.1")
DEFAULT_PORT = int(os.getenv("PORT", "8000"))
SESSION_TTL = int(os.getenv("SESSION_TTL", "14400"))   # 초 (4시간). 응시 중이면 시험+휴식+유예 이상으로 늘어남
CLEANUP_INTERVAL = 300                                 # 만료 세션 정리 주기 (초)

# 시험 기본 설정 (ms)
DEFAULT_ALLOTTED_MS = int(os.getenv("EXAM_ALLOTTED_MS", str(2 * 60 * 60 * 1000)))   # 2시간
DEFAULT_PAUSE_MS = int(os.getenv("EXAM_PAUSE_MS", str(15 * 60 * 1000)))            # 15분
AUTO_SUBMIT_GRACE_MS = int(os.getenv("AUTO_SUBMIT_GRACE_MS", "30000"))    # 자동 제출: 타이머/네트워크 지연 흡수
MANUAL_SUBMIT_GRACE_MS = int(os.getenv("MANUAL_SUBMIT_GRACE_MS", "5000"))  # 수동 제출: 마감 직전 제출 방지

# 채점
PASS_SCORE = float(os.getenv("PASS_SCORE", "60.0"))
