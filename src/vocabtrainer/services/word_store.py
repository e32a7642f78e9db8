"""Service for storing words, sessions and training results."""
import logging
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from vocabtrainer.exceptions import PersistenceError
from vocabtrainer.models.base import utcnow
from vocabtrainer.models.models import (
    Source,
    TrainingResult,
    TrainingSession,
    User,
    Word,
)

logger = logging.getLogger(__name__)

WORD_UPDATABLE_FIELDS = {
    "status",
    "translation",
    "definition",
    "phonetic_text",
    "phonetic_audio",
    "examples",
    "synonyms",
    "antonyms",
    "last_trained_at",
    "deleted_at",
}

SESSION_UPDATABLE_FIELDS = {
    "current_index",
    "completed_words",
    "correct_answers",
    "incorrect_answers",
    "completed_at",
}


class WordStore:
    """Service for persisting the state the training engine works on."""

    def __init__(self, db: Session):
        """Initialize the service with a database session."""
        self.db = db

    def _commit(self, action: str) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to {action}: {e}")
            raise PersistenceError(f"Failed to {action}") from e

    # Users and sources

    def get_or_create_user(self, username: str, native_language: str = "uk", target_language: str = "en") -> User:
        """Get a user by name, creating it on first use."""
        user = self.db.query(User).filter(User.username == username).first()
        if user:
            return user
        user = User(username=username, native_language=native_language, target_language=target_language)
        self.db.add(user)
        self._commit(f"create user {username}")
        self.db.refresh(user)
        return user

    def create_source(self, user_id: int, title: str) -> Source:
        """Create a source collection for the user."""
        source = Source(user_id=user_id, title=title)
        self.db.add(source)
        self._commit(f"create source {title}")
        self.db.refresh(source)
        return source

    def get_source_by_title(self, user_id: int, title: str) -> Optional[Source]:
        """Get one of the user's sources by its title."""
        return (
            self.db.query(Source)
            .filter(Source.user_id == user_id, Source.title == title)
            .first()
        )

    # Words

    def add_word(
        self,
        user_id: int,
        text: str,
        source_ids: Iterable[int] = (),
        status: int = 1,
        **fields: Any,
    ) -> Word:
        """Add a word for the user, or attach new sources to an existing one."""
        text = text.strip()
        word = (
            self.db.query(Word)
            .filter(
                Word.user_id == user_id,
                func.lower(Word.text) == text.lower(),
                Word.deleted_at.is_(None),
            )
            .first()
        )
        if word is None:
            word = Word(user_id=user_id, text=text, status=status, **fields)
            self.db.add(word)

        source_ids = list(source_ids)
        if source_ids:
            sources = self.db.query(Source).filter(Source.id.in_(source_ids)).all()
            for source in sources:
                if source not in word.sources:
                    word.sources.append(source)

        self._commit(f"add word {text}")
        self.db.refresh(word)
        return word

    def list_words(self, user_id: int) -> List[Word]:
        """Get all of the user's words that have not been deleted."""
        return (
            self.db.query(Word)
            .filter(Word.user_id == user_id, Word.deleted_at.is_(None))
            .order_by(Word.id)
            .all()
        )

    def get_word(self, word_id: int) -> Optional[Word]:
        """Get a word by its ID."""
        return self.db.query(Word).filter(Word.id == word_id).first()

    def update_word(self, word_id: int, **fields: Any) -> Optional[Word]:
        """Update a word's attributes."""
        unknown = set(fields) - WORD_UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update word fields: {', '.join(sorted(unknown))}")

        word = self.get_word(word_id)
        if not word:
            logger.warning(f"Word {word_id} not found for update")
            return None

        for key, value in fields.items():
            setattr(word, key, value)

        self._commit(f"update word {word_id}")
        self.db.refresh(word)
        return word

    def delete_word(self, word_id: int) -> bool:
        """Mark a word as deleted. Results keep pointing at it."""
        word = self.get_word(word_id)
        if not word:
            return False
        if word.deleted_at is None:
            word.deleted_at = utcnow()
            self._commit(f"delete word {word_id}")
        return True

    # Sessions and results

    def create_session(
        self,
        user_id: int,
        word_ids: List[int],
        settings: Dict[str, Any],
    ) -> int:
        """Create a training session row and return its ID."""
        session = TrainingSession(
            user_id=user_id,
            word_ids=list(word_ids),
            current_index=0,
            completed_words=[],
            correct_answers=0,
            incorrect_answers=0,
            settings=settings,
            started_at=utcnow(),
        )
        self.db.add(session)
        self._commit("create training session")
        self.db.refresh(session)
        return session.id

    def get_session(self, session_id: int) -> Optional[TrainingSession]:
        """Get a training session by its ID."""
        return self.db.query(TrainingSession).filter(TrainingSession.id == session_id).first()

    def update_session(self, session_id: int, **fields: Any) -> Optional[TrainingSession]:
        """Update progress fields of a training session."""
        unknown = set(fields) - SESSION_UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update session fields: {', '.join(sorted(unknown))}")

        session = self.get_session(session_id)
        if not session:
            logger.warning(f"Training session {session_id} not found for update")
            return None

        for key, value in fields.items():
            # JSON columns need a fresh list to be flagged as changed
            setattr(session, key, list(value) if isinstance(value, list) else value)

        self._commit(f"update training session {session_id}")
        return session

    def record_result(
        self,
        user_id: int,
        word_id: int,
        result: str,
        type: str,
        old_status: int,
        new_status: int,
        session_id: Optional[int] = None,
    ) -> TrainingResult:
        """Append a training result."""
        record = TrainingResult(
            user_id=user_id,
            word_id=word_id,
            session_id=session_id,
            result=result,
            type=type,
            old_status=old_status,
            new_status=new_status,
            timestamp=utcnow(),
        )
        self.db.add(record)
        self._commit(f"record result for word {word_id}")
        return record

    def get_results(
        self,
        word_id: Optional[int] = None,
        session_id: Optional[int] = None,
    ) -> List[TrainingResult]:
        """Get training results in the order they were recorded."""
        query = self.db.query(TrainingResult)
        if word_id is not None:
            query = query.filter(TrainingResult.word_id == word_id)
        if session_id is not None:
            query = query.filter(TrainingResult.session_id == session_id)
        return query.order_by(TrainingResult.id).all()
