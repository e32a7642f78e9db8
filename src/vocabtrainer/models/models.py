"""Database models for the trainer."""
from sqlalchemy import (
    JSON,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Table,
)
from sqlalchemy.orm import relationship

from vocabtrainer.models.base import Base, TimestampMixin, utcnow


word_sources = Table(
    "word_sources",
    Base.metadata,
    Column("word_id", Integer, ForeignKey("words.id", ondelete="CASCADE"), primary_key=True),
    Column("source_id", Integer, ForeignKey("sources.id", ondelete="CASCADE"), primary_key=True),
)


class User(Base, TimestampMixin):
    """User model."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, nullable=False)
    native_language = Column(String, nullable=False, default="uk")
    target_language = Column(String, nullable=False, default="en")

    # Relationships
    words = relationship("Word", back_populates="user")
    sources = relationship("Source", back_populates="user")
    training_sessions = relationship("TrainingSession", back_populates="user")


class Source(Base, TimestampMixin):
    """A text the user's words were extracted from."""

    __tablename__ = "sources"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    title = Column(String, nullable=False)

    # Relationships
    user = relationship("User", back_populates="sources")
    words = relationship("Word", secondary=word_sources, back_populates="sources")


class Word(Base, TimestampMixin):
    """Word model."""

    __tablename__ = "words"
    __table_args__ = (
        CheckConstraint("status BETWEEN 1 AND 7", name="ck_words_status_range"),
    )

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    text = Column(String, nullable=False)
    translation = Column(String, nullable=False, default="")
    definition = Column(String, nullable=False, default="")
    phonetic_text = Column(String)
    phonetic_audio = Column(String)
    examples = Column(JSON, nullable=False, default=list)
    synonyms = Column(JSON, nullable=False, default=list)
    antonyms = Column(JSON, nullable=False, default=list)
    status = Column(Integer, nullable=False, default=1)  # 1-7, see STATUS_LABELS
    last_trained_at = Column(DateTime(timezone=True))
    deleted_at = Column(DateTime(timezone=True))  # soft delete

    # Relationships
    user = relationship("User", back_populates="words")
    sources = relationship("Source", secondary=word_sources, back_populates="words")
    results = relationship("TrainingResult", back_populates="word")

    @property
    def source_ids(self) -> list[int]:
        return [source.id for source in self.sources]

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def __repr__(self) -> str:
        return f"<Word id={self.id} text={self.text!r} status={self.status}>"


class TrainingSession(Base, TimestampMixin):
    """One bounded practice run."""

    __tablename__ = "training_sessions"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    word_ids = Column(JSON, nullable=False, default=list)  # presentation order
    current_index = Column(Integer, nullable=False, default=0)
    completed_words = Column(JSON, nullable=False, default=list)
    correct_answers = Column(Integer, nullable=False, default=0)
    incorrect_answers = Column(Integer, nullable=False, default=0)
    settings = Column(JSON, nullable=False, default=dict)
    started_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    completed_at = Column(DateTime(timezone=True))

    # Relationships
    user = relationship("User", back_populates="training_sessions")
    results = relationship("TrainingResult", back_populates="session")


class TrainingResult(Base):
    """Immutable record of one answered or manually changed word."""

    __tablename__ = "training_results"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    word_id = Column(Integer, ForeignKey("words.id"), nullable=False, index=True)
    session_id = Column(Integer, ForeignKey("training_sessions.id"), nullable=True, index=True)
    result = Column(String, nullable=False)  # "correct" / "incorrect"
    type = Column(String, nullable=False)  # question type or "manual"
    old_status = Column(Integer, nullable=False)
    new_status = Column(Integer, nullable=False)
    timestamp = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    # Relationships
    word = relationship("Word", back_populates="results")
    session = relationship("TrainingSession", back_populates="results")
