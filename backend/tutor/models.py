from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

Language = Literal["python", "c", "cpp", "java"]
Level = Literal["basic", "moderate", "complex"]
ErrorType = Literal["syntax", "logic", "typo", "structure", "style"]
Severity = Literal["error", "warning", "info"]
Understanding = Literal["struggling", "learning", "confident"]

MAX_PREVIOUS_EXPLANATIONS = 5
MAX_ERROR_HISTORY = 10


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class DetectedError(BaseModel):
    type: ErrorType
    description: str = Field(description="Beginner-friendly description of the likely issue")
    line: Optional[int] = Field(default=None, description="1-based source line")
    severity: Severity = "warning"


class ComplexityEstimate(BaseModel):
    best: str
    worst: str
    average: str
    explanation: str


def _dedupe(items: List[str]) -> List[str]:
    seen = set()
    result = []
    for item in items:
        if item not in seen:
            seen.add(item)
            result.append(item)
    return result


class LearningState(CamelModel):
    struggling_concepts: List[str] = Field(default_factory=list, alias="strugglingConcepts")
    mastered_concepts: List[str] = Field(default_factory=list, alias="masteredConcepts")
    hints_given_this_session: int = Field(default=0, ge=0, alias="hintsGivenThisSession")
    same_error_repeated: bool = Field(default=False, alias="sameErrorRepeated")
    previous_explanations: List[str] = Field(default_factory=list, alias="previousExplanations")
    last_error_type: Optional[str] = Field(default=None, alias="lastErrorType")
    current_understanding: Understanding = Field(default="learning", alias="currentUnderstanding")
    error_history: List[str] = Field(default_factory=list, alias="errorHistory")
    session_start_time: Optional[str] = Field(default=None, alias="sessionStartTime")

    @field_validator("struggling_concepts", "mastered_concepts")
    @classmethod
    def _unique(cls, value: List[str]) -> List[str]:
        return _dedupe(value)

    @field_validator("previous_explanations")
    @classmethod
    def _bound_explanations(cls, value: List[str]) -> List[str]:
        return value[-MAX_PREVIOUS_EXPLANATIONS:]

    @field_validator("error_history")
    @classmethod
    def _bound_history(cls, value: List[str]) -> List[str]:
        return value[-MAX_ERROR_HISTORY:]

    def to_client(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class AnalysisRequest(CamelModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    code: str
    language: Language
    level: Level
    hint_level: int = Field(default=1, ge=1, le=5, alias="hintLevel")
    user_question: Optional[str] = Field(default=None, alias="userQuestion")
    learning_state: Optional[LearningState] = Field(default=None, alias="learningState")
    include_complexity: bool = Field(default=False, alias="includeComplexity")


class RunRequest(BaseModel):
    code: Optional[str] = None
    language: Optional[str] = None
    input: Optional[str] = None


class LearningStateRequest(CamelModel):
    learning_state: LearningState = Field(default_factory=LearningState, alias="learningState")
    concept: Optional[str] = None


class RunResult(CamelModel):
    success: bool
    output: str = ""
    error: str = ""
    execution_time: int = Field(default=0, alias="executionTime")
    exit_code: Optional[int] = Field(default=None, alias="exitCode")
    timed_out: bool = Field(default=False, exclude=True)


class ExtractedText(CamelModel):
    text: str
    is_code: bool = Field(default=False, alias="isCode")
    language: Optional[str] = None
