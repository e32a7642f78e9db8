"""Question generation for word training."""
import logging
import random
import re
import uuid
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence, final

from vocabtrainer.models.training_models import QuestionType, TrainingQuestion, TrainingWord

logger = logging.getLogger(__name__)

BLANK = "_____"

# Distractors for choose_translation, in the default target language
FALLBACK_TRANSLATIONS = ["дом", "книга", "машина", "дерево", "вода", "небо", "земля", "сонце"]

# Generic fillers for synonym_match
FILLER_OPTIONS = ["similar", "different", "opposite", "related"]

MAX_DISTRACTORS = 3


def get_all_subclasses(cls):
    """Get all subclasses of a class."""
    all_subclasses = []
    for subclass in cls.__subclasses__():
        all_subclasses.append(subclass)
        all_subclasses.extend(get_all_subclasses(subclass))
    return all_subclasses


def normalize_answer(value: Optional[str]) -> str:
    return (value or "").strip().lower()


def check_answer(question: TrainingQuestion, answer: Optional[str]) -> bool:
    """Case and surrounding-whitespace insensitive exact match."""
    return normalize_answer(answer) == normalize_answer(question.correct_answer)


def _shuffled_options(correct: str, pool: List[str]) -> List[str]:
    """Correct answer plus up to three distractors, each appearing once."""
    distractors = [option for option in dict.fromkeys(pool)
                   if normalize_answer(option) != normalize_answer(correct)]
    random.shuffle(distractors)
    options = [correct] + distractors[:MAX_DISTRACTORS]
    random.shuffle(options)
    return options


class BaseQuestionBuilder(ABC):
    """Base class for all question builders."""

    type: QuestionType

    @abstractmethod
    def _create_question(self, word: TrainingWord) -> TrainingQuestion:
        """Build the question. Must be implemented by subclasses."""
        raise NotImplementedError("Subclasses must implement this method")

    @classmethod
    def should_be_used_for_word(cls, word: TrainingWord) -> bool:
        """Determine if this question kind can be asked for the given word."""
        return True

    @final
    def create_question(self, word: TrainingWord) -> TrainingQuestion:
        logger.debug(f"{type(self).__name__}: creating question for word: {word.text}")
        return self._create_question(word)

    @staticmethod
    def _new_question(word: TrainingWord, type: QuestionType, question: str, correct_answer: str, **extra) -> TrainingQuestion:
        return TrainingQuestion(
            id=f"question_{uuid.uuid4().hex}",
            word_id=word.id,
            type=type,
            question=question,
            correct_answer=correct_answer,
            **extra,
        )


class InputWordQuestion(BaseQuestionBuilder):
    """Show the translation, ask for the word."""
    type = QuestionType.INPUT_WORD

    def _create_question(self, word: TrainingWord) -> TrainingQuestion:
        translation = word.translation or "No translation available"
        return self._new_question(
            word,
            self.type,
            f'Type the English word for: "{translation}"',
            normalize_answer(word.text),
        )


class ChooseTranslationQuestion(BaseQuestionBuilder):
    """Show the word, pick its translation."""
    type = QuestionType.CHOOSE_TRANSLATION

    def _create_question(self, word: TrainingWord) -> TrainingQuestion:
        correct = word.translation or "No translation"
        return self._new_question(
            word,
            self.type,
            f'Choose the correct translation for: "{word.text}"',
            correct,
            options=_shuffled_options(correct, FALLBACK_TRANSLATIONS),
        )


class ContextUsageQuestion(BaseQuestionBuilder):
    """Fill the blank in an example sentence."""
    type = QuestionType.CONTEXT_USAGE

    @classmethod
    def should_be_used_for_word(cls, word: TrainingWord) -> bool:
        return bool(word.examples)

    def _create_question(self, word: TrainingWord) -> TrainingQuestion:
        pattern = re.compile(rf"\b{re.escape(word.text)}\b", re.IGNORECASE)
        context = None
        for example in word.examples:
            if pattern.search(example):
                context = pattern.sub(BLANK, example, count=1)
                break
        if context is None:
            context = f'I need to use the word "{BLANK}" in a sentence.'
        return self._new_question(
            word,
            self.type,
            "Complete the sentence with the correct word:",
            normalize_answer(word.text),
            context=context,
        )


class SynonymMatchQuestion(BaseQuestionBuilder):
    """Pick a synonym or an antonym of the word."""
    type = QuestionType.SYNONYM_MATCH

    @classmethod
    def should_be_used_for_word(cls, word: TrainingWord) -> bool:
        return bool(word.synonyms or word.antonyms)

    def _create_question(self, word: TrainingWord) -> TrainingQuestion:
        if not self.should_be_used_for_word(word):
            return BUILDERS[QuestionType.CHOOSE_TRANSLATION].create_question(word)

        ask_synonym = random.random() > 0.5
        if ask_synonym and not word.synonyms:
            ask_synonym = False
        elif not ask_synonym and not word.antonyms:
            ask_synonym = True

        correct = word.synonyms[0] if ask_synonym else word.antonyms[0]
        kind = "synonym" if ask_synonym else "antonym"
        return self._new_question(
            word,
            self.type,
            f'Choose a {kind} for: "{word.text}"',
            correct,
            options=_shuffled_options(correct, FILLER_OPTIONS),
        )


class AudioDictationQuestion(BaseQuestionBuilder):
    """Play the pronunciation, ask to type the word."""
    type = QuestionType.AUDIO_DICTATION

    @classmethod
    def should_be_used_for_word(cls, word: TrainingWord) -> bool:
        return bool(word.phonetic_audio)

    def _create_question(self, word: TrainingWord) -> TrainingQuestion:
        return self._new_question(
            word,
            self.type,
            "Listen to the audio and type what you hear:",
            normalize_answer(word.text),
            audio_url=word.phonetic_audio,
        )


BUILDERS: Dict[QuestionType, BaseQuestionBuilder] = {
    builder_class.type: builder_class() for builder_class in get_all_subclasses(BaseQuestionBuilder)
}


def generate_question(word: TrainingWord, type: QuestionType) -> TrainingQuestion:
    """Generate a question of the given kind for a word."""
    type = QuestionType(type)
    if type == QuestionType.MANUAL:
        raise ValueError("Manual review has no generated question")
    return BUILDERS[type].create_question(word)


def eligible_types(word: TrainingWord) -> List[QuestionType]:
    """Question kinds that make sense for the word, in declaration order."""
    return [qtype for qtype, builder in BUILDERS.items() if builder.should_be_used_for_word(word)]


def generate_random_type(word: TrainingWord) -> QuestionType:
    """Pick one eligible question kind at random."""
    return random.choice(eligible_types(word))


def generate_questions_for_word(
    word: TrainingWord, types: Sequence[QuestionType] = ()
) -> List[TrainingQuestion]:
    """Generate one question per requested kind, or a single random one."""
    if not types:
        return [generate_question(word, generate_random_type(word))]
    return [generate_question(word, qtype) for qtype in types]
