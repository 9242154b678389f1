"""
models/exam_layout.py

문제 배치(ExamLayout)와 답안지(AnswerLedger).
ExamLayout은 문제 순서와 중간 지점(midpoint)을 고정해 두 개의 웨이브로 나눈다:
  - 1차 웨이브: [0, midpoint)
  - 2차 웨이브: [midpoint, n)
"""

from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class ExamLayout(BaseModel):
    question_ids: List[str] = Field(
        ...,
        min_length=1,
        description="출제 순서대로 정렬된 문제 ID 목록"
    )
    midpoint: int = Field(
        ...,
        description="1차/2차 웨이브 경계 인덱스 (0 < midpoint <= n)"
    )

    model_config = {"frozen": True}

    @field_validator('question_ids')
    @classmethod
    def validate_unique_ids(cls, v: List[str]) -> List[str]:
        if len(set(v)) != len(v):
            raise ValueError("문제 ID가 중복되었습니다.")
        return v

    @model_validator(mode='after')
    def validate_midpoint_range(self) -> 'ExamLayout':
        n = len(self.question_ids)
        if not 0 < self.midpoint <= n:
            raise ValueError(f"midpoint({self.midpoint})는 1 이상 {n} 이하여야 합니다.")
        return self

    @classmethod
    def split_in_half(cls, question_ids: List[str], midpoint: Optional[int] = None) -> 'ExamLayout':
        """
        midpoint를 지정하지 않으면 n // 2로 나눈다 (문제가 1개면 1).
        """
        if midpoint is None:
            midpoint = max(1, len(question_ids) // 2)
        return cls(question_ids=list(question_ids), midpoint=midpoint)

    @property
    def total(self) -> int:
        return len(self.question_ids)

    @property
    def first_wave(self) -> List[str]:
        return self.question_ids[:self.midpoint]

    @property
    def second_wave(self) -> List[str]:
        return self.question_ids[self.midpoint:]

    def contains_index(self, index: int) -> bool:
        return 0 <= index < self.total


class AnswerLedger:
    """
    사용자 답안지. {question_id: 선택한 답}

    같은 문제에 다시 답하면 이전 답을 덮어쓴다 (재응답 허용).
    """

    def __init__(self, answers: Optional[Dict[str, str]] = None) -> None:
        self._answers: Dict[str, str] = dict(answers or {})

    def record(self, question_id: str, value: str) -> None:
        self._answers[question_id] = value

    def get(self, question_id: str) -> Optional[str]:
        return self._answers.get(question_id)

    def answered_count(self, question_ids: Iterable[str]) -> int:
        """주어진 범위에서 답이 기록된 문제 수. 재응답은 한 번만 센다."""
        return sum(1 for qid in set(question_ids) if qid in self._answers)

    def as_dict(self) -> Dict[str, str]:
        return dict(self._answers)

    def __len__(self) -> int:
        return len(self._answers)

    def __contains__(self, question_id: object) -> bool:
        return question_id in self._answers
