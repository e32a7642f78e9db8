"""Console entry point for the trainer."""
import argparse
import logging
import sys
from typing import List, Optional

from vocabtrainer.config import STATUS_LABELS, settings
from vocabtrainer.exceptions import EnrichmentError, NoEligibleWordsError
from vocabtrainer.logging_config import setup_logging
from vocabtrainer.models.base import SessionLocal, init_db
from vocabtrainer.models.training_models import QuestionType, SessionCriteria, status_label
from vocabtrainer.monitoring import start_monitoring
from vocabtrainer.services.enrichment_service import EnrichmentService, ensure_wordnet
from vocabtrainer.services.training_engine import TrainingSessionEngine
from vocabtrainer.services.word_store import WordStore

logger = logging.getLogger(__name__)

HELP = ":skip  :next  :prev  :status N  :delete  :reload  :finish  :quit"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="vocabtrainer", description="Vocabulary training in the terminal")
    parser.add_argument("--user", required=True, help="user name, created on first use")
    subparsers = parser.add_subparsers(dest="command", required=True)

    add = subparsers.add_parser("add", help="add words to your vocabulary")
    add.add_argument("words", nargs="+")
    add.add_argument("--source", help="title of the text the words come from")
    add.add_argument("--no-lookup", action="store_true", help="do not fetch translations and definitions")

    train = subparsers.add_parser("train", help="run a training session")
    train.add_argument("--status", type=int, nargs="+", default=[1, 2, 3, 4, 5, 6],
                       choices=sorted(STATUS_LABELS), help="statuses to train")
    train.add_argument("--source", action="append", default=[], help="only words from these sources")
    train.add_argument("--size", type=int, default=settings.training.default_session_size)
    train.add_argument("--type", dest="types", nargs="+", default=settings.training.default_question_types,
                       choices=[t.value for t in QuestionType])
    return parser


def add_words(store: WordStore, enrichment: EnrichmentService, user_id: int, args) -> None:
    source_ids = []
    if args.source:
        source = store.get_source_by_title(user_id, args.source) or store.create_source(user_id, args.source)
        source_ids.append(source.id)

    for text in args.words:
        fields = {}
        if not args.no_lookup:
            try:
                fields["translation"] = enrichment.translate(text)
                bundle = enrichment.define(text)
                fields.update(
                    definition=bundle.definition,
                    phonetic_text=bundle.phonetic_text,
                    phonetic_audio=bundle.phonetic_audio,
                    examples=bundle.examples,
                    synonyms=bundle.synonyms,
                    antonyms=bundle.antonyms,
                )
            except EnrichmentError as e:
                logger.warning(f"Lookup failed for {text}: {e}")
        word = store.add_word(user_id, text, source_ids=source_ids, **fields)
        print(f"{word.text} - {word.translation or '?'} [{status_label(word.status)}]")


def ask(engine: TrainingSessionEngine) -> bool:
    """Show the current question and handle one line of input. False means quit."""
    word = engine.current_word
    question = engine.current_question
    print(f"\n[{engine.current_index + 1}/{len(engine.words)}]")
    if question is None:
        print(word.text)
        print(f"Status: {status_label(word.status)}. Use :status N to change it.")
    else:
        print(question.question)
        if question.context:
            print(f"  {question.context}")
        if question.audio_url:
            print(f"  audio: {question.audio_url}")
        for number, option in enumerate(question.options or [], start=1):
            print(f"  {number}. {option}")

    line = input("> ").strip()
    if line == ":quit":
        return False
    if line == ":skip":
        engine.skip()
    elif line == ":next":
        engine.next()
    elif line == ":prev":
        engine.previous()
    elif line == ":finish":
        engine.complete_session()
    elif line == ":delete":
        engine.handle_delete(word)
    elif line == ":reload":
        engine.reload_translation()
    elif line.startswith(":status"):
        try:
            engine.handle_status_change(word.id, int(line.split()[1]))
        except (IndexError, ValueError):
            print("Usage: :status 1-7")
    elif line.startswith(":"):
        print(HELP)
    elif question is not None:
        if question.options and line.isdigit() and 1 <= int(line) <= len(question.options):
            line = question.options[int(line) - 1]
        if engine.submit_answer(line):
            print("Correct!")
        else:
            print(f"Wrong, the answer is: {question.correct_answer}")

    if engine.error:
        print(f"! {engine.error}")
    return True


def train(engine: TrainingSessionEngine, store: WordStore, user_id: int, args) -> None:
    source_ids = []
    for title in args.source:
        source = store.get_source_by_title(user_id, title)
        if source is None:
            print(f"Unknown source: {title}")
            return
        source_ids.append(source.id)

    criteria = SessionCriteria(
        selected_statuses=args.status,
        source_ids=source_ids,
        session_size=args.size,
        question_types=args.types,
    )
    try:
        engine.start(criteria)
    except NoEligibleWordsError as e:
        print(e)
        return

    print(HELP)
    while True:
        while engine.is_in_progress:
            if not ask(engine):
                engine.end_session()
                return

        summary = engine.summary()
        print(
            f"\nDone: {summary.correct_answers} correct, {summary.incorrect_answers} incorrect, "
            f"accuracy {summary.accuracy:.0f}%"
        )
        if not summary.retry_candidates or input(f"Retry {summary.retry_candidates} weak words? [y/N] ").lower() != "y":
            engine.end_session()
            return
        if not engine.retry_incorrect_answers():
            return


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging("Starting vocabtrainer ...")
    if settings.monitoring.enabled:
        start_monitoring(settings.monitoring.port)

    init_db()
    ensure_wordnet()
    db = SessionLocal()
    try:
        store = WordStore(db)
        user = store.get_or_create_user(args.user)
        enrichment = EnrichmentService(source_lang=user.target_language, target_lang=user.native_language)
        if args.command == "add":
            add_words(store, enrichment, user.id, args)
        else:
            engine = TrainingSessionEngine(user.id, store, enrichment)
            train(engine, store, user.id, args)
    except (KeyboardInterrupt, EOFError):
        logger.info("Interrupted, shutting down...")
    finally:
        db.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
