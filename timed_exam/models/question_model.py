from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class Question(BaseModel):
    """
    모의고사 문제 모델 (채점용 최소 정보)
    문제 은행 관리는 외부 시스템 몫. 여기서는 시험 시작 시 전달받은 그대로 사용한다.
    """
    id: str = Field(
        ...,
        min_length=1,
        description="문제 ID (고유 식별자)"
    )
    question_text: str = Field(
        ...,
        min_length=1,
        description="발문/문제 내용"
    )
    options: List[str] = Field(
        ...,
        description="보기 리스트 (객관식 선지)"
    )
    answer: str = Field(
        default="",
        description="정답 (보기 중 하나, 정답 정보가 없으면 빈 문자열)"
    )
    explanation: Optional[str] = Field(
        None,
        description="해설"
    )

    @field_validator('options')
    @classmethod
    def validate_options_length(cls, v: List[str]) -> List[str]:
        """
        보기는 최소 2개 이상이어야 한다.
        """
        if len(v) < 2:
            raise ValueError("보기(options)는 최소 2개 이상의 항목이 필요합니다.")
        return v

    @model_validator(mode='after')
    def validate_answer_in_options(self) -> 'Question':
        """
        정답이 존재하는 경우, 반드시 보기 리스트 안에 있어야 한다.
        """
        if self.answer and self.answer not in self.options:
            raise ValueError(f"정답('{self.answer}')이 보기 리스트({self.options})에 존재하지 않습니다.")
        return self
