"""Errors raised by the training core."""


class TrainingError(Exception):
    """Base class for all trainer errors."""


class NoEligibleWordsError(TrainingError):
    """No word matched the session selection criteria."""

    def __init__(self, message: str = "No words available for training with the selected criteria"):
        super().__init__(message)


class EnrichmentError(TrainingError):
    """A translation or definition lookup failed."""


class PersistenceError(TrainingError):
    """A write to the word store failed."""
