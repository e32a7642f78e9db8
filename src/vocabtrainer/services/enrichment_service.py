"""Translation and dictionary lookups for words."""
import logging
from dataclasses import dataclass, field
from typing import List, Optional
from urllib.parse import quote

import eng_to_ipa as ipa
import requests
from deep_translator import GoogleTranslator
from deep_translator.exceptions import TranslationNotFound
from nltk.corpus import wordnet

from vocabtrainer import monitoring
from vocabtrainer.config import settings
from vocabtrainer.exceptions import EnrichmentError

logger = logging.getLogger(__name__)


@dataclass
class DefinitionBundle:
    """Everything a dictionary lookup can tell about a word."""
    definition: str
    phonetic_text: Optional[str] = None
    phonetic_audio: Optional[str] = None
    examples: List[str] = field(default_factory=list)
    synonyms: List[str] = field(default_factory=list)
    antonyms: List[str] = field(default_factory=list)

    @property
    def found(self) -> bool:
        return not EnrichmentService.is_missing(self.definition)


class EnrichmentService:
    """Looks up translations and definitions for word texts."""

    def __init__(
        self,
        source_lang: Optional[str] = None,
        target_lang: Optional[str] = None,
        session: Optional[requests.Session] = None,
    ):
        self.source_lang = source_lang or settings.enrichment.source_lang
        self.target_lang = target_lang or settings.enrichment.target_lang
        self.http = session or requests.Session()

    @staticmethod
    def is_missing(value: Optional[str]) -> bool:
        """Empty values and lookup sentinels both mean the field needs a refresh."""
        if value is None:
            return True
        value = value.strip()
        return value in (
            "",
            settings.enrichment.translation_not_found,
            settings.enrichment.definition_not_found,
        )

    def translate(self, text: str) -> str:
        """Translate a word, returning the sentinel when nothing was found."""
        try:
            translator = GoogleTranslator(source=self.source_lang, target=self.target_lang)
            translation = translator.translate(text)
        except TranslationNotFound:
            translation = None
        except Exception as e:
            logger.error(f"Error translating word: {text}, error: {e}")
            monitoring.enrichment_lookups.labels(kind="translation", outcome="failed").inc()
            raise EnrichmentError(f"Translation lookup failed for '{text}'") from e

        translation = (translation or "").strip()
        if not translation:
            logger.info(f"No translation found for word: {text}")
            monitoring.enrichment_lookups.labels(kind="translation", outcome="not_found").inc()
            return settings.enrichment.translation_not_found

        logger.info(f"Translation found for word: {text}, translation: {translation}")
        monitoring.enrichment_lookups.labels(kind="translation", outcome="found").inc()
        return translation

    def define(self, text: str) -> DefinitionBundle:
        """Look up a definition with phonetics, examples, synonyms and antonyms."""
        url = f"{settings.enrichment.dictionary_api_url}/{quote(text)}"
        try:
            response = self.http.get(url, timeout=settings.enrichment.request_timeout)
        except requests.RequestException as e:
            logger.error(f"Error fetching definition for word: {text}, error: {e}")
            monitoring.enrichment_lookups.labels(kind="definition", outcome="failed").inc()
            raise EnrichmentError(f"Definition lookup failed for '{text}'") from e

        if response.status_code == 404:
            bundle = DefinitionBundle(definition=settings.enrichment.definition_not_found)
        elif response.status_code != 200:
            monitoring.enrichment_lookups.labels(kind="definition", outcome="failed").inc()
            raise EnrichmentError(
                f"Definition lookup failed for '{text}': HTTP {response.status_code}"
            )
        else:
            try:
                bundle = self._parse_entries(response.json())
            except ValueError as e:
                monitoring.enrichment_lookups.labels(kind="definition", outcome="failed").inc()
                raise EnrichmentError(f"Malformed dictionary response for '{text}'") from e

        self._fill_gaps(text, bundle)
        outcome = "found" if bundle.found else "not_found"
        monitoring.enrichment_lookups.labels(kind="definition", outcome=outcome).inc()
        logger.info(f"Definition lookup for word: {text}, outcome: {outcome}")
        return bundle

    @staticmethod
    def _parse_entries(data) -> DefinitionBundle:
        """Convert a dictionary API payload into a bundle."""
        if not isinstance(data, list) or not data:
            return DefinitionBundle(definition=settings.enrichment.definition_not_found)

        entry = data[0]
        bundle = DefinitionBundle(definition=settings.enrichment.definition_not_found)

        for phonetic in entry.get("phonetics") or []:
            if not bundle.phonetic_text and phonetic.get("text"):
                bundle.phonetic_text = phonetic["text"]
            if not bundle.phonetic_audio and phonetic.get("audio"):
                bundle.phonetic_audio = phonetic["audio"]
        if not bundle.phonetic_text and entry.get("phonetic"):
            bundle.phonetic_text = entry["phonetic"]

        for meaning in entry.get("meanings") or []:
            for definition in meaning.get("definitions") or []:
                if EnrichmentService.is_missing(bundle.definition) and definition.get("definition"):
                    bundle.definition = definition["definition"]
                if definition.get("example"):
                    bundle.examples.append(definition["example"])
                bundle.synonyms.extend(definition.get("synonyms") or [])
                bundle.antonyms.extend(definition.get("antonyms") or [])
            bundle.synonyms.extend(meaning.get("synonyms") or [])
            bundle.antonyms.extend(meaning.get("antonyms") or [])

        bundle.synonyms = _unique(bundle.synonyms)
        bundle.antonyms = _unique(bundle.antonyms)
        bundle.examples = _unique(bundle.examples)
        return bundle

    def _fill_gaps(self, text: str, bundle: DefinitionBundle) -> None:
        """Complete a bundle from local resources where the API had nothing."""
        if self.source_lang != "en" or len(text.split()) != 1:
            return

        if not bundle.phonetic_text:
            try:
                transcription = ipa.convert(text)
            except Exception as e:
                logger.error(f"Error generating transcription for word: {text}, error: {e}")
                transcription = ""
            # eng_to_ipa marks words it does not know with a trailing asterisk
            if transcription and not transcription.endswith("*"):
                bundle.phonetic_text = transcription

        if bundle.examples and (bundle.synonyms or bundle.antonyms):
            return
        try:
            synsets = wordnet.synsets(text)
        except LookupError:
            logger.warning("WordNet corpus is not installed, skipping local lookup")
            return

        synonyms, antonyms, examples = [], [], []
        for synset in synsets:
            examples.extend(synset.examples())
            for lemma in synset.lemmas():
                name = lemma.name().replace("_", " ")
                if name.lower() != text.lower():
                    synonyms.append(name)
                antonyms.extend(a.name().replace("_", " ") for a in lemma.antonyms())

        if not bundle.examples:
            bundle.examples = _unique(examples)
        if not bundle.synonyms:
            bundle.synonyms = _unique(synonyms)
        if not bundle.antonyms:
            bundle.antonyms = _unique(antonyms)


def _unique(items: List[str]) -> List[str]:
    seen = set()
    result = []
    for item in items:
        if item and item not in seen:
            seen.add(item)
            result.append(item)
    return result


def ensure_wordnet() -> None:
    """Download the WordNet corpus if it is missing."""
    import nltk

    try:
        nltk.data.find("corpora/wordnet")
    except LookupError:
        nltk.download("wordnet", quiet=True)
        logger.info("Downloaded NLTK wordnet data")
