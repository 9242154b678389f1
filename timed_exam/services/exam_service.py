"""
services/exam_service.py

제출된 응시 기록의 채점 및 결과 분석.
순수 Python 함수로 구성 — 전역 상태 변경 없음.
"""

from typing import Dict, List

from timed_exam.models.exam_layout import ExamLayout
from timed_exam.models.question_model import Question


def count_correct(
    questions: List[Question],
    user_answers: Dict[str, str],
) -> int:
    """정답 수. 정답 정보가 없는 문제(answer == "")는 맞힌 것으로 세지 않는다."""
    return sum(
        1
        for q in questions
        if q.answer and user_answers.get(q.id) == q.answer
    )


def calculate_score(
    questions: List[Question],
    user_answers: Dict[str, str],
) -> float:
    """
    사용자 답안을 채점하여 100점 만점 환산 점수를 반환한다.

    정답 판정 기준: question.answer == user_answers.get(question.id)
    응답하지 않은 문제는 오답으로 처리.

    Returns:
        0.0 ~ 100.0 범위의 점수 (소수점 둘째 자리 반올림).
        questions가 빈 리스트이면 0.0 반환.
    """
    if not questions:
        return 0.0

    return round(count_correct(questions, user_answers) / len(questions) * 100, 2)


def get_incorrect_questions(
    questions: List[Question],
    user_answers: Dict[str, str],
) -> List[Question]:
    """
    오답 문제 리스트 (원본 순서 유지).
    정답 정보가 없는 문제(answer == "")는 채점할 수 없으므로 제외.
    """
    return [
        q for q in questions
        if q.answer and user_answers.get(q.id) != q.answer
    ]


def calculate_wave_scores(
    layout: ExamLayout,
    questions: List[Question],
    user_answers: Dict[str, str],
) -> List[Dict[str, object]]:
    """
    웨이브별 점수.

    Returns:
        [{"wave": "first_wave" | "second_wave", "total": int, "correct": int,
          "incorrect": int, "unanswered": int, "score": float}, ...]
    """
    by_id = {q.id: q for q in questions}
    result = []
    for wave, ids in (("first_wave", layout.first_wave), ("second_wave", layout.second_wave)):
        b = {"total": len(ids), "correct": 0, "incorrect": 0, "unanswered": 0}
        for qid in ids:
            q = by_id.get(qid)
            if q is None or not q.answer:
                continue
            user_ans = user_answers.get(qid)
            if user_ans is None:
                b["unanswered"] += 1
            elif user_ans == q.answer:
                b["correct"] += 1
            else:
                b["incorrect"] += 1
        scorable = b["correct"] + b["incorrect"] + b["unanswered"]
        score = round(b["correct"] / scorable * 100, 1) if scorable else 0.0
        result.append({"wave": wave, **b, "score": score})
    return result


def is_passed(score: float, pass_score: float = 60.0) -> bool:
    return score >= pass_score
