"""Training session engine.

The engine owns one practice run at a time: it selects the words, walks the
learner through one question per word, moves each word along the status
ladder, and records what happened. Public actions are serialized with a
re-entrant lock, so an action issued while another one is still talking to
the store or the enrichment service waits for it instead of interleaving.

Persistence is best-effort. A failed write is logged, counted and exposed
through ``error``/``errors``; the in-memory session keeps going.
"""
import functools
import logging
import threading
from dataclasses import replace
from typing import List, Optional, Tuple, Union

from vocabtrainer import monitoring
from vocabtrainer.config import settings
from vocabtrainer.exceptions import (
    EnrichmentError,
    NoEligibleWordsError,
    PersistenceError,
    TrainingError,
)
from vocabtrainer.models.base import utcnow
from vocabtrainer.models.training_models import (
    AnswerResult,
    QuestionType,
    SessionCriteria,
    SessionSummary,
    TrainingQuestion,
    TrainingSettings,
    TrainingWord,
    next_status,
)
from vocabtrainer.services.enrichment_service import EnrichmentService
from vocabtrainer.services.question_generator import check_answer, generate_question
from vocabtrainer.services.word_store import WordStore

logger = logging.getLogger(__name__)


def _serialized(method):
    """Run a public action under the engine lock with the loading flag raised."""
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            self.loading = True
            self.error = None
            try:
                return method(self, *args, **kwargs)
            finally:
                self.loading = False
    return wrapper


class TrainingSessionEngine:
    """Stateful handle driving a single training session for one user."""

    def __init__(self, user_id: int, word_store: WordStore, enrichment: EnrichmentService):
        self.user_id = user_id
        self.word_store = word_store
        self.enrichment = enrichment
        self._lock = threading.RLock()
        self.loading = False
        self.error: Optional[str] = None
        self._reset()

    def _reset(self) -> None:
        self.session_id: Optional[int] = None
        self.settings: Optional[TrainingSettings] = None
        self.word_ids: Tuple[int, ...] = ()
        self.words: List[TrainingWord] = []
        self.current_question: Optional[TrainingQuestion] = None
        self.current_index = 0
        self.is_started = False
        self.is_completed = False
        self.correct_answers = 0
        self.incorrect_answers = 0
        self.completed_words: List[int] = []
        self.errors: List[str] = []

    # Derived state

    @property
    def is_in_progress(self) -> bool:
        return self.is_started and not self.is_completed

    @property
    def question_type(self) -> Optional[QuestionType]:
        """The kind every question of this session is asked with."""
        if self.settings is None:
            return None
        # TODO: rotate question_types per word instead of always using the first one
        return self.settings.question_types[0]

    @property
    def current_word(self) -> Optional[TrainingWord]:
        if not self.is_in_progress or self.current_index >= len(self.words):
            return None
        return self.words[self.current_index]

    @property
    def progress(self) -> float:
        if not self.words:
            return 0
        return self.current_index / len(self.words) * 100

    @property
    def accuracy(self) -> float:
        answered = self.correct_answers + self.incorrect_answers
        if answered == 0:
            return 0
        return self.correct_answers / answered * 100

    def summary(self) -> SessionSummary:
        """Final counters for the end-of-session screen."""
        threshold = settings.training.retry_status_threshold
        return SessionSummary(
            total_words=len(self.word_ids),
            answered=self.correct_answers + self.incorrect_answers,
            correct_answers=self.correct_answers,
            incorrect_answers=self.incorrect_answers,
            accuracy=self.accuracy,
            completed_words=list(self.completed_words),
            retry_candidates=sum(1 for word in self.words if word.status <= threshold),
        )

    # Session lifecycle

    @_serialized
    def start(self, criteria: SessionCriteria) -> int:
        """Select words for a new session and expose the first question.

        Words are filtered by status and (optionally) by source, ordered by
        ascending status so the least known words come first, and truncated
        to the session size. Raises NoEligibleWordsError when nothing is left.
        """
        self._reset()
        statuses = set(criteria.selected_statuses)
        sources = set(criteria.source_ids)

        candidates = [
            TrainingWord.from_model(word)
            for word in self.word_store.list_words(self.user_id)
            if word.status in statuses and (not sources or sources.intersection(word.source_ids))
        ]
        candidates.sort(key=lambda word: word.status)
        selected = candidates[:criteria.session_size]
        logger.info(
            f"Selected {len(selected)} of {len(candidates)} eligible words for user {self.user_id}"
        )

        if not selected:
            error = NoEligibleWordsError()
            self.error = str(error)
            raise error

        self._begin(selected, TrainingSettings.from_criteria(criteria), kind="new")
        return len(selected)

    @_serialized
    def retry_incorrect_answers(self) -> bool:
        """Start a new session over the words still at a low status.

        Returns False (and ends the session) when no word qualifies.
        """
        threshold = settings.training.retry_status_threshold
        retry_words = [replace(word) for word in self.words if word.status <= threshold]
        previous_settings = self.settings

        if not retry_words or previous_settings is None:
            logger.info("No words left to retry, ending session")
            self._reset()
            return False

        self._reset()
        self._begin(retry_words, replace(previous_settings, session_size=len(retry_words)), kind="retry")
        return True

    @_serialized
    def complete_session(self) -> None:
        """Finish the session regardless of the current position."""
        if not self.is_in_progress:
            return
        self._finish()

    @_serialized
    def end_session(self) -> None:
        """Drop all in-memory session state. Stored rows are kept."""
        logger.info(f"Ending session {self.session_id}")
        self._reset()

    def _begin(self, words: List[TrainingWord], session_settings: TrainingSettings, kind: str) -> None:
        word_ids = [word.id for word in words]
        try:
            self.session_id = self.word_store.create_session(
                self.user_id, word_ids, session_settings.to_dict()
            )
        except PersistenceError as e:
            self._record_error(e)

        self.settings = session_settings
        self.word_ids = tuple(word_ids)
        self.words = list(words)
        self.current_index = 0
        self.is_started = True
        self.is_completed = False

        monitoring.sessions_started.labels(kind=kind).inc()
        monitoring.session_size.observe(len(words))
        logger.info(
            f"Started {kind} session {self.session_id} for user {self.user_id} "
            f"with {len(words)} words ({self.question_type.value})"
        )
        self._prepare_current_word()

    def _finish(self) -> None:
        self.is_completed = True
        self.current_question = None
        self.current_index = len(self.words)
        self._save_progress(completed_at=utcnow())
        monitoring.sessions_completed.inc()
        logger.info(
            f"Session {self.session_id} completed: {self.correct_answers} correct, "
            f"{self.incorrect_answers} incorrect"
        )

    # Question loop

    @_serialized
    def answer(self, is_correct: bool) -> None:
        """Score the current word, move it on the ladder and advance."""
        self._answer(is_correct)

    def _answer(self, is_correct: bool) -> None:
        word = self.current_word
        if word is None or self.current_question is None:
            logger.warning("Answer received without an active question, ignoring")
            return

        old_status = word.status
        word.status = next_status(old_status, is_correct)
        result = AnswerResult.CORRECT if is_correct else AnswerResult.INCORRECT
        if is_correct:
            self.correct_answers += 1
        else:
            self.incorrect_answers += 1
        self._mark_completed(word.id)

        logger.debug(f"Word {word.id} answered {result.value}: status {old_status} -> {word.status}")
        monitoring.answers.labels(question_type=self.current_question.type.value, result=result.value).inc()
        self._persist_status(word, old_status, result, self.current_question.type)
        self._advance()

    @_serialized
    def submit_answer(self, answer: str) -> Optional[bool]:
        """Check a typed or selected answer and score it."""
        question = self.current_question
        if question is None:
            logger.warning("Answer submitted without an active question, ignoring")
            return None
        is_correct = check_answer(question, answer)
        self._answer(is_correct)
        return is_correct

    @_serialized
    def skip(self) -> None:
        """Move past the current word without scoring it."""
        word = self.current_word
        if word is None:
            return
        self._mark_completed(word.id)
        logger.debug(f"Word {word.id} skipped")
        self._advance()

    @_serialized
    def next(self) -> None:
        """Show the next word, or finish when already on the last one."""
        if self.current_word is None:
            return
        self._advance()

    @_serialized
    def previous(self) -> None:
        """Step back one word for display only."""
        if self.current_word is None or self.current_index == 0:
            return
        self.current_index -= 1
        self._prepare_current_word(refresh=False)

    def _advance(self) -> None:
        if self.current_index + 1 < len(self.words):
            self.current_index += 1
            self._prepare_current_word()
            self._save_progress()
        else:
            self._finish()

    def _mark_completed(self, word_id: int) -> None:
        if word_id not in self.completed_words:
            self.completed_words.append(word_id)

    def _prepare_current_word(self, refresh: bool = True) -> None:
        word = self.words[self.current_index]
        if refresh and EnrichmentService.is_missing(word.translation):
            self._refresh_translation(word)
        self._regenerate_question()

    def _regenerate_question(self) -> None:
        word = self.current_word
        if word is None or self.question_type == QuestionType.MANUAL:
            self.current_question = None
            return
        self.current_question = generate_question(word, self.question_type)

    # Manual edits and deletion

    @_serialized
    def handle_status_change(self, word_id: int, new_status: int) -> bool:
        """Set the current word's status directly, outside the quiz flow."""
        if not settings.training.min_status <= new_status <= settings.training.max_status:
            raise ValueError(f"Status must be between {settings.training.min_status} and {settings.training.max_status}")

        word = self.current_word
        if word is None or word.id != word_id:
            logger.debug(f"Ignoring status change for word {word_id}, it is not the current word")
            return False

        old_status = word.status
        word.status = new_status
        monitoring.manual_status_changes.inc()
        logger.debug(f"Word {word.id} status set manually: {old_status} -> {new_status}")
        self._persist_status(word, old_status, AnswerResult.CORRECT, QuestionType.MANUAL)
        return True

    @_serialized
    def handle_delete(self, word: Union[TrainingWord, int]) -> None:
        """Soft-delete a word and drop it from the running session."""
        word_id = word if isinstance(word, int) else word.id
        try:
            self.word_store.delete_word(word_id)
        except PersistenceError as e:
            self._record_error(e)
        monitoring.words_deleted.inc()

        position = next((i for i, w in enumerate(self.words) if w.id == word_id), None)
        if position is None:
            return
        was_current = self.is_in_progress and position == self.current_index
        del self.words[position]
        logger.info(f"Word {word_id} removed from session {self.session_id}")

        if not self.is_in_progress:
            return
        if not self.words:
            self._finish()
        elif was_current:
            if self.current_index < len(self.words):
                self._prepare_current_word()
            else:
                self.current_index -= 1
                self._prepare_current_word(refresh=False)
            self._save_progress()
        elif position < self.current_index:
            self.current_index -= 1
            self._save_progress()

    # Enrichment refresh

    @_serialized
    def reload_translation(self) -> None:
        """Look the current word's translation up again."""
        word = self.current_word
        if word is None:
            return
        self._refresh_translation(word)
        self._regenerate_question()

    @_serialized
    def reload_definition(self) -> None:
        """Look the current word's definition bundle up again."""
        word = self.current_word
        if word is None:
            return
        try:
            bundle = self.enrichment.define(word.text)
        except EnrichmentError as e:
            self._record_error(e)
            bundle = None

        fields = {"definition": bundle.definition if bundle else settings.enrichment.definition_not_found}
        if bundle is not None:
            if bundle.phonetic_text:
                fields["phonetic_text"] = bundle.phonetic_text
            if bundle.phonetic_audio:
                fields["phonetic_audio"] = bundle.phonetic_audio
            for name in ("examples", "synonyms", "antonyms"):
                if getattr(bundle, name):
                    fields[name] = list(getattr(bundle, name))

        for key, value in fields.items():
            setattr(word, key, value)
        try:
            self.word_store.update_word(word.id, **fields)
        except PersistenceError as e:
            self._record_error(e)
        self._regenerate_question()

    def _refresh_translation(self, word: TrainingWord) -> None:
        try:
            translation = self.enrichment.translate(word.text)
        except EnrichmentError as e:
            self._record_error(e)
            translation = settings.enrichment.translation_not_found
        word.translation = translation
        try:
            self.word_store.update_word(word.id, translation=translation)
        except PersistenceError as e:
            self._record_error(e)

    # Persistence helpers

    def _persist_status(
        self,
        word: TrainingWord,
        old_status: int,
        result: AnswerResult,
        question_type: QuestionType,
    ) -> None:
        """Write the word's status and append a result. Each write stands alone."""
        try:
            self.word_store.update_word(word.id, status=word.status, last_trained_at=utcnow())
        except PersistenceError as e:
            self._record_error(e)
        try:
            self.word_store.record_result(
                user_id=self.user_id,
                word_id=word.id,
                result=result.value,
                type=question_type.value,
                old_status=old_status,
                new_status=word.status,
                session_id=self.session_id,
            )
        except PersistenceError as e:
            self._record_error(e)

    def _save_progress(self, **extra) -> None:
        if self.session_id is None:
            return
        try:
            self.word_store.update_session(
                self.session_id,
                current_index=self.current_index,
                completed_words=list(self.completed_words),
                correct_answers=self.correct_answers,
                incorrect_answers=self.incorrect_answers,
                **extra,
            )
        except PersistenceError as e:
            self._record_error(e)

    def _record_error(self, error: TrainingError) -> None:
        message = str(error)
        logger.warning(f"Recoverable training error: {message}")
        monitoring.error_count.labels(error_type=type(error).__name__).inc()
        self.error = message
        self.errors.append(message)
