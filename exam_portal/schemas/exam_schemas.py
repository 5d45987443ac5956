# exam_portal/schemas/exam_schemas.py
from enum import Enum
from typing import Dict, List, Optional, Set

from pydantic import BaseModel, Field, field_validator


class QuestionType(str, Enum):
    MULTIPLE_CHOICE = "multiple_choice"
    PERFORMANCE = "performance"


class ExamPhase(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class ActivityAction(str, Enum):
    EXAM_STARTED = "exam_started"
    EXAM_RESET = "exam_reset"
    EXAM_SUBMITTED = "exam_submitted"
    ANSWER_SAVED = "answer_saved"


class Question(BaseModel):
    id: int  # display sequence number inside a composed exam
    original_id: int  # storage id
    question_number: Optional[int] = None
    domain: str
    text: str
    type: QuestionType = QuestionType.MULTIPLE_CHOICE
    options: Dict[str, str] = Field(default_factory=dict)
    correct_answer: str
    points: float = Field(default=10, ge=0)
    instructions: str = ""

    @property
    def is_performance(self) -> bool:
        return self.type == QuestionType.PERFORMANCE

    def correct_answer_text(self) -> str:
        return self.options.get(self.correct_answer, self.correct_answer)


class ComposedExam(BaseModel):
    questions: Dict[int, Question] = Field(default_factory=dict)
    used_fallback: bool = False

    @property
    def count(self) -> int:
        return len(self.questions)

    @property
    def performance_count(self) -> int:
        return sum(1 for q in self.questions.values() if q.is_performance)

    def get(self, sequence: int) -> Optional[Question]:
        return self.questions.get(sequence)

    def original_ids(self) -> Dict[int, int]:
        return {seq: q.original_id for seq, q in self.questions.items()}


class AttemptState(BaseModel):
    """Per-session progress through one composed exam."""

    started: bool = False
    start_time: Optional[int] = None
    time_remaining: int = 3000
    current_question: int = 1
    answers: Dict[int, str] = Field(default_factory=dict)
    flagged: Set[int] = Field(default_factory=set)
    completed: bool = False
    score: int = 0
    submitted: bool = False
    questions_loaded: int = 0
    shuffled_questions: Dict[int, Question] = Field(default_factory=dict)
    original_ids: Dict[int, int] = Field(default_factory=dict)

    @classmethod
    def fresh(cls, duration: int) -> "AttemptState":
        return cls(time_remaining=duration)

    @property
    def phase(self) -> ExamPhase:
        if self.completed:
            return ExamPhase.COMPLETED
        if self.started:
            return ExamPhase.IN_PROGRESS
        return ExamPhase.NOT_STARTED

    @property
    def exam(self) -> ComposedExam:
        return ComposedExam(questions=self.shuffled_questions)


class ExamContext(BaseModel):
    """Who is taking the exam and from where; attached to every log row."""

    user_id: int
    user_role: str
    class_id: Optional[int] = None
    exam_type: str = "MO-300"
    ip_address: str = "unknown"
    user_agent: str = "unknown"


class ExamActionRequest(BaseModel):
    submit_exam: bool = False
    save_answer: bool = False
    flag_question: bool = False
    question_id: Optional[int] = None
    answer: Optional[str] = None

    @field_validator("answer")
    def strip_answer(cls, v):
        return v.strip() if v is not None else v


class UserProfile(BaseModel):
    user_id: int
    email: str = ""
    first_name: str = ""
    last_name: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class InstructorInfo(BaseModel):
    name: str
    email: str


# --- Views returned by the mock exam endpoint ---

class PublicQuestion(BaseModel):
    id: int
    domain: str
    text: str
    type: QuestionType
    options: Dict[str, str]
    points: float
    instructions: str = ""


class StartScreenView(BaseModel):
    exam_type: str
    duration_seconds: int
    total_questions: int
    performance_questions: int
    multiple_choice_questions: int
    max_score: int
    passing_score: int
    domains: List[str]


class ExamProgressView(BaseModel):
    current_question: PublicQuestion
    question_count: int
    answers: Dict[int, str]
    flagged: List[int]
    progress_percentage: int
    time_remaining: int
    time_remaining_display: str


class DomainPerformance(BaseModel):
    domain: str
    correct: int
    total: int
    percentage: int


class QuestionReview(BaseModel):
    id: int
    domain: str
    text: str
    status: str  # correct, incorrect, unanswered
    user_answer: Optional[str] = None
    user_answer_text: str = ""
    correct_answer: str
    correct_answer_text: str


class ExamResultSummary(BaseModel):
    score: int
    max_score: int
    passing_score: int
    passed: bool
    total_questions: int
    answered: int
    correct: int
    percentage: int
    flagged: int
    time_spent_seconds: int
    time_spent_display: str


class ExamResultsView(BaseModel):
    summary: ExamResultSummary
    domain_breakdown: List[DomainPerformance]
    recommendations: List[str]
    review: List[QuestionReview]


class ExamView(BaseModel):
    phase: ExamPhase
    exam_type: str
    class_id: Optional[int] = None
    candidate: Optional[UserProfile] = None
    start_screen: Optional[StartScreenView] = None
    progress: Optional[ExamProgressView] = None
    results: Optional[ExamResultsView] = None
