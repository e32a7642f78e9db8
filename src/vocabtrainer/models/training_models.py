"""Models for training-related data structures."""
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from vocabtrainer.config import STATUS_LABELS, settings
from vocabtrainer.models.models import Word


class QuestionType(Enum):
    """Available question kinds."""
    INPUT_WORD = "input_word"  # Show the translation, type the word
    CHOOSE_TRANSLATION = "choose_translation"  # Pick the translation from options
    CONTEXT_USAGE = "context_usage"  # Fill the blank in an example sentence
    SYNONYM_MATCH = "synonym_match"  # Pick a synonym or antonym
    AUDIO_DICTATION = "audio_dictation"  # Listen and type
    MANUAL = "manual"  # Direct status edit, no generated question


class AnswerResult(Enum):
    """Outcome stored on a training result."""
    CORRECT = "correct"
    INCORRECT = "incorrect"


def clamp_status(status: int) -> int:
    """Clamp a status value to the ladder bounds."""
    return max(settings.training.min_status, min(settings.training.max_status, status))


def next_status(status: int, is_correct: bool) -> int:
    """Move one step up the ladder on success, one step down on failure."""
    return clamp_status(status + (1 if is_correct else -1))


def status_label(status: int) -> str:
    """Human readable label for a status value."""
    return STATUS_LABELS.get(status, "Unknown")


@dataclass
class TrainingWord:
    """In-memory snapshot of a word taking part in a session."""
    id: int
    text: str
    status: int
    translation: str = ""
    definition: str = ""
    phonetic_text: Optional[str] = None
    phonetic_audio: Optional[str] = None
    examples: List[str] = field(default_factory=list)
    synonyms: List[str] = field(default_factory=list)
    antonyms: List[str] = field(default_factory=list)
    source_ids: List[int] = field(default_factory=list)

    @classmethod
    def from_model(cls, word: Word) -> "TrainingWord":
        """Build a snapshot from a stored word."""
        return cls(
            id=word.id,
            text=word.text,
            status=word.status,
            translation=word.translation or "",
            definition=word.definition or "",
            phonetic_text=word.phonetic_text,
            phonetic_audio=word.phonetic_audio,
            examples=list(word.examples or []),
            synonyms=list(word.synonyms or []),
            antonyms=list(word.antonyms or []),
            source_ids=word.source_ids,
        )


@dataclass
class TrainingQuestion:
    """A question generated for one word. Never persisted."""
    id: str
    word_id: int
    type: QuestionType
    question: str
    correct_answer: str
    options: Optional[List[str]] = None  # multiple choice kinds only
    context: Optional[str] = None  # context_usage only
    audio_url: Optional[str] = None  # audio_dictation only


@dataclass
class SessionCriteria:
    """What the caller asks a session to be built from."""
    selected_statuses: Sequence[int]
    source_ids: Sequence[int] = ()
    session_size: int = field(default_factory=lambda: settings.training.default_session_size)
    question_types: Sequence[QuestionType] = field(
        default_factory=lambda: [QuestionType(name) for name in settings.training.default_question_types]
    )

    def __post_init__(self):
        self.question_types = [QuestionType(t) for t in self.question_types]
        if not self.question_types:
            raise ValueError("At least one question type is required")
        if self.session_size < 1:
            raise ValueError("Session size must be positive")


@dataclass(frozen=True)
class TrainingSettings:
    """Snapshot of the configuration a session was built with."""
    question_types: tuple
    session_size: int
    selected_statuses: tuple = ()
    source_ids: tuple = ()
    priority_lower_status: bool = True

    @classmethod
    def from_criteria(cls, criteria: SessionCriteria) -> "TrainingSettings":
        return cls(
            question_types=tuple(criteria.question_types),
            session_size=criteria.session_size,
            selected_statuses=tuple(sorted(set(criteria.selected_statuses))),
            source_ids=tuple(sorted(set(criteria.source_ids))),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serializable version for database storage."""
        data = asdict(self)
        data["question_types"] = [t.value for t in self.question_types]
        data["selected_statuses"] = list(self.selected_statuses)
        data["source_ids"] = list(self.source_ids)
        return data


@dataclass
class SessionSummary:
    """Final counters of a session, for the end-of-session screen."""
    total_words: int
    answered: int
    correct_answers: int
    incorrect_answers: int
    accuracy: float
    completed_words: List[int]
    retry_candidates: int
