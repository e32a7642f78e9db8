"""Tests for configuration settings."""
import pytest

from vocabtrainer.config import STATUS_LABELS, Settings, TrainingConfig, settings


def test_settings_defaults():
    """Test default settings values."""
    assert settings.database.url == "sqlite://"
    assert settings.training.default_session_size == 10
    assert settings.training.min_status == 1
    assert settings.training.max_status == 7
    assert settings.training.retry_status_threshold == 2
    assert settings.training.default_question_types == ["input_word"]
    assert settings.enrichment.translation_not_found == "No translation found."
    assert settings.enrichment.definition_not_found == "No definition found."


def test_status_labels_cover_ladder():
    """Every status on the ladder has a label."""
    assert sorted(STATUS_LABELS) == list(range(1, 8))
    assert STATUS_LABELS[1] == "Not Learned"
    assert STATUS_LABELS[7] == "Mastered"


def test_settings_from_env(monkeypatch):
    """Test that settings can be overridden by environment variables."""
    monkeypatch.setenv("DEFAULT_QUESTION_TYPES", "choose_translation, input_word")

    from vocabtrainer.config import get_default_question_types

    assert get_default_question_types() == ["choose_translation", "input_word"]


@pytest.mark.parametrize(
    "training, message",
    [
        (TrainingConfig(min_status=5, max_status=3, retry_status_threshold=4), "MIN_STATUS"),
        (TrainingConfig(retry_status_threshold=9), "RETRY_STATUS_THRESHOLD"),
        (TrainingConfig(default_session_size=0), "DEFAULT_SESSION_SIZE"),
        (TrainingConfig(default_question_types=["crossword"]), "Unknown question type"),
    ],
)
def test_validate_rejects_inconsistent_values(training, message):
    """Invalid training settings are reported."""
    with pytest.raises(ValueError, match=message):
        Settings(training=training).validate()


if __name__ == "__main__":
    pytest.main([__file__])
