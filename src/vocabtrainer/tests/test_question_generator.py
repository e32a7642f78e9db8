"""Tests for question generation."""
import pytest

from vocabtrainer.models.training_models import QuestionType, TrainingWord
from vocabtrainer.services import question_generator
from vocabtrainer.services.question_generator import (
    BLANK,
    FALLBACK_TRANSLATIONS,
    check_answer,
    eligible_types,
    generate_question,
    generate_questions_for_word,
    generate_random_type,
)


def make_word(**fields) -> TrainingWord:
    data = {"id": 1, "text": "Cat", "status": 1, "translation": "кіт"}
    data.update(fields)
    return TrainingWord(**data)


def test_input_word_question() -> None:
    """The translation is shown and the normalized word is expected."""
    question = generate_question(make_word(text="  Cat "), QuestionType.INPUT_WORD)

    assert question.type == QuestionType.INPUT_WORD
    assert question.word_id == 1
    assert "кіт" in question.question
    assert question.correct_answer == "cat"
    assert question.options is None
    assert question.context is None


def test_input_word_without_translation() -> None:
    question = generate_question(make_word(translation=""), QuestionType.INPUT_WORD)
    assert "No translation available" in question.question


@pytest.mark.parametrize("translation", ["кіт", "дом", "сонце"])
def test_choose_translation_contains_correct_once(translation) -> None:
    """The translation is offered exactly once even when it is also in the distractor pool."""
    for _ in range(20):
        question = generate_question(make_word(translation=translation), QuestionType.CHOOSE_TRANSLATION)
        assert question.correct_answer == translation
        assert len(question.options) >= 2
        assert len(question.options) <= 4
        assert question.options.count(translation) == 1
        assert len(set(question.options)) == len(question.options)


def test_choose_translation_uses_fallback_pool() -> None:
    question = generate_question(make_word(), QuestionType.CHOOSE_TRANSLATION)
    distractors = [option for option in question.options if option != "кіт"]
    assert len(distractors) == 3
    assert all(option in FALLBACK_TRANSLATIONS for option in distractors)


def test_context_usage_blanks_example() -> None:
    """The word is blanked out of its example, whatever the case."""
    word = make_word(examples=["My cat sleeps all day.", "Another sentence."])
    question = generate_question(word, QuestionType.CONTEXT_USAGE)

    assert question.context == f"My {BLANK} sleeps all day."
    assert question.correct_answer == "cat"


def test_context_usage_without_example_is_synthetic() -> None:
    """Words without examples get a templated sentence with a blank."""
    question = generate_question(make_word(examples=[]), QuestionType.CONTEXT_USAGE)

    assert question.context
    assert BLANK in question.context
    assert "Cat" not in question.context


def test_context_usage_example_without_word() -> None:
    question = generate_question(make_word(examples=["Nothing to see here."]), QuestionType.CONTEXT_USAGE)
    assert BLANK in question.context


def test_synonym_match_picks_available_kind(mocker) -> None:
    """A coin flip that lands on an empty list uses the other one."""
    mocker.patch.object(question_generator.random, "random", return_value=0.9)  # synonym
    word = make_word(synonyms=[], antonyms=["dog"])
    question = generate_question(word, QuestionType.SYNONYM_MATCH)

    assert question.type == QuestionType.SYNONYM_MATCH
    assert "antonym" in question.question
    assert question.correct_answer == "dog"
    assert question.options.count("dog") == 1
    assert len(question.options) == 4


def test_synonym_match_synonym() -> None:
    word = make_word(synonyms=["kitty", "puss"], antonyms=[])
    question = generate_question(word, QuestionType.SYNONYM_MATCH)

    assert "synonym" in question.question
    assert question.correct_answer == "kitty"


def test_synonym_match_filler_collision() -> None:
    """A synonym that equals a filler is not offered twice."""
    word = make_word(synonyms=["similar"], antonyms=[])
    question = generate_question(word, QuestionType.SYNONYM_MATCH)

    assert question.options.count("similar") == 1
    assert len(question.options) == 4


def test_synonym_match_falls_back_to_translation() -> None:
    """Without synonyms or antonyms a translation choice is generated."""
    question = generate_question(make_word(), QuestionType.SYNONYM_MATCH)

    assert question.type == QuestionType.CHOOSE_TRANSLATION
    assert "кіт" in question.options


def test_audio_dictation() -> None:
    word = make_word(phonetic_audio="https://example.org/cat.mp3")
    question = generate_question(word, QuestionType.AUDIO_DICTATION)

    assert question.audio_url == "https://example.org/cat.mp3"
    assert question.correct_answer == "cat"


def test_audio_dictation_without_audio() -> None:
    question = generate_question(make_word(), QuestionType.AUDIO_DICTATION)
    assert question.audio_url is None


def test_manual_is_not_generated() -> None:
    with pytest.raises(ValueError):
        generate_question(make_word(), QuestionType.MANUAL)


def test_question_ids_are_unique() -> None:
    word = make_word()
    ids = {generate_question(word, QuestionType.INPUT_WORD).id for _ in range(10)}
    assert len(ids) == 10


def test_eligible_types() -> None:
    """Optional kinds depend on the word's enrichment data."""
    assert eligible_types(make_word()) == [QuestionType.INPUT_WORD, QuestionType.CHOOSE_TRANSLATION]

    rich = make_word(examples=["A cat."], antonyms=["dog"], phonetic_audio="cat.mp3")
    assert set(eligible_types(rich)) == {
        QuestionType.INPUT_WORD,
        QuestionType.CHOOSE_TRANSLATION,
        QuestionType.CONTEXT_USAGE,
        QuestionType.SYNONYM_MATCH,
        QuestionType.AUDIO_DICTATION,
    }


def test_generate_random_type_is_eligible() -> None:
    word = make_word(examples=["A cat."])
    for _ in range(20):
        assert generate_random_type(word) in eligible_types(word)


@pytest.mark.parametrize(
    "answer, expected",
    [("cat", True), ("  CAT ", True), ("Cat\n", True), ("cats", False), ("", False), (None, False)],
)
def test_check_answer(answer, expected) -> None:
    question = generate_question(make_word(), QuestionType.INPUT_WORD)
    assert check_answer(question, answer) is expected


def test_check_answer_multiple_choice() -> None:
    question = generate_question(make_word(), QuestionType.CHOOSE_TRANSLATION)
    assert check_answer(question, "кіт") is True
    assert check_answer(question, "КІТ") is True
    wrong = next(option for option in question.options if option != "кіт")
    assert check_answer(question, wrong) is False



def test_context_usage_blanks_whole_word_only() -> None:
    """A word inside a longer word is left alone."""
    word = make_word(examples=["The category of this cat is rare."])
    question = generate_question(word, QuestionType.CONTEXT_USAGE)

    assert question.context == f"The category of this {BLANK} is rare."


def test_context_usage_only_inside_longer_word_is_synthetic() -> None:
    question = generate_question(make_word(examples=["A category."]), QuestionType.CONTEXT_USAGE)
    assert question.context == f'I need to use the word "{BLANK}" in a sentence.'


def test_generate_questions_for_word() -> None:
    """One question per requested kind, in order."""
    word = make_word(examples=["A cat."])
    questions = generate_questions_for_word(word, [QuestionType.INPUT_WORD, QuestionType.CONTEXT_USAGE])

    assert [q.type for q in questions] == [QuestionType.INPUT_WORD, QuestionType.CONTEXT_USAGE]
    assert all(q.word_id == word.id for q in questions)


def test_generate_questions_for_word_without_types() -> None:
    """With no kinds requested a single eligible question is produced."""
    word = make_word()
    questions = generate_questions_for_word(word)

    assert len(questions) == 1
    assert questions[0].type in eligible_types(word)


if __name__ == "__main__":
    pytest.main([__file__])
