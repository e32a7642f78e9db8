"""Test configuration."""
import os
from pathlib import Path
from typing import Generator
from unittest.mock import Mock

import pytest
from dotenv import load_dotenv
from faker import Faker

# Set test environment before any imports
os.environ["ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"

# Load test environment variables
test_env_path = Path(__file__).parent.parent.parent.parent / ".env.test"
load_dotenv(test_env_path)

# Import after environment setup
from sqlalchemy.orm import Session

from vocabtrainer.models.base import SessionLocal, drop_db, init_db
from vocabtrainer.models.models import User
from vocabtrainer.services.enrichment_service import EnrichmentService
from vocabtrainer.services.word_store import WordStore

fake = Faker()


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create a fresh database for each test."""
    drop_db()
    init_db()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def word_store(db: Session) -> WordStore:
    """Create a word store instance."""
    return WordStore(db)


@pytest.fixture
def user(word_store: WordStore) -> User:
    """Create a test user."""
    return word_store.get_or_create_user(fake.unique.user_name())


@pytest.fixture
def enrichment() -> Mock:
    """Enrichment service that never touches the network."""
    service = Mock(spec=EnrichmentService)
    service.translate.return_value = "переклад"
    return service
