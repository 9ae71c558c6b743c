"""Map free-text product queries onto the fixed nutrient vocabulary.

The resolver is a keyword matcher, not a language parser. It strips product
form words, picks up compound names and fixed combinations, then looks for
element names or symbols as whole words. When nothing explicit is found it
falls back to crop and general-intent hints and finally to a default
soil-health group.

The AND/OR decision is a plain heuristic: a query containing the word ``or``
between spaces selects :attr:`Combinator.ANY`, anything else selects
:attr:`Combinator.ALL`.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Dict, Iterable, Mapping, Sequence

from .models import Combinator, TokenGroups
from .utils import load_dataset, whole_word_pattern

_LOGGER = logging.getLogger(__name__)

NUTRIENTS_FILE = "nutrients.json"
SYNONYMS_FILE = "nutrient_synonyms.json"
QUERY_TERMS_FILE = "nutrient_query_terms.json"
COMBINATIONS_FILE = "nutrient_combinations.json"

_SPLIT_RE = re.compile(r"[,\s]+")

__all__ = [
    "NutrientResolution",
    "NutrientTerm",
    "NutrientResolver",
    "SynonymTable",
    "allowed_nutrients",
    "load_synonyms",
    "group_tokens",
    "detect_combinator",
    "get_resolver",
    "resolve_query",
    "get_nutrient_info",
    "list_nutrient_combinations",
    "clear_cache",
]


@dataclass(frozen=True, slots=True)
class NutrientTerm:
    """Query phrases that select a fixed list of tokens."""

    tokens: tuple[str, ...]
    phrases: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class NutrientResolution:
    """Outcome of resolving one query."""

    groups: TokenGroups
    combinator: Combinator
    is_fallback: bool = False

    @property
    def tokens(self) -> list[str]:
        """Return all tokens of all groups flattened in order."""
        return [token for group in self.groups for token in group]


class SynonymTable:
    """Lookup of interchangeable nutrient tokens."""

    def __init__(self, groups: Iterable[Sequence[str]] = ()) -> None:
        self._index: Dict[str, tuple[str, ...]] = {}
        for raw in groups:
            group = tuple(str(t) for t in raw)
            for token in group:
                if token in self._index:
                    raise ValueError(f"Nutrient {token} listed in more than one synonym group")
                self._index[token] = group

    def group_for(self, token: str) -> tuple[str, ...]:
        return self._index.get(token, (token,))


def _terms(entries: Any) -> tuple[NutrientTerm, ...]:
    terms: list[NutrientTerm] = []
    for entry in entries or ():
        if not isinstance(entry, Mapping):
            continue
        tokens = tuple(str(t) for t in entry.get("tokens", ()))
        phrases = tuple(str(p).casefold() for p in entry.get("phrases", ()))
        if tokens and phrases:
            terms.append(NutrientTerm(tokens=tokens, phrases=phrases))
    return tuple(terms)


@lru_cache(maxsize=1)
def allowed_nutrients() -> tuple[str, ...]:
    """Return the closed nutrient vocabulary."""
    data = load_dataset(NUTRIENTS_FILE)
    return tuple(str(t) for t in data.get("allowed", ()))


@lru_cache(maxsize=1)
def load_synonyms() -> SynonymTable:
    data = load_dataset(SYNONYMS_FILE)
    return SynonymTable(data.get("groups", ()))


def group_tokens(tokens: Iterable[str], synonyms: SynonymTable | None = None) -> TokenGroups:
    """Collapse a flat token list into ordered synonym groups.

    A token whose group was already emitted, directly or through a synonym
    partner, is skipped.
    """

    table = synonyms if synonyms is not None else load_synonyms()
    groups: list[tuple[str, ...]] = []
    processed: set[str] = set()
    for token in tokens:
        if token in processed:
            continue
        group = table.group_for(token)
        groups.append(group)
        processed.update(group)
    return tuple(groups)


def detect_combinator(query: str) -> Combinator:
    """Return ``ANY`` when ``query`` contains the word ``or``."""
    padded = f" {query.casefold()} "
    return Combinator.ANY if " or " in padded else Combinator.ALL


def _contains_phrase(text: str, phrase: str) -> bool:
    return whole_word_pattern(phrase).search(text) is not None


class NutrientResolver:
    """Keyword based resolver built from the nutrient query datasets."""

    def __init__(
        self,
        *,
        elements: Sequence[NutrientTerm],
        compounds: Sequence[NutrientTerm] = (),
        combinations: Sequence[NutrientTerm] = (),
        crop_hints: Sequence[NutrientTerm] = (),
        general_terms: Sequence[NutrientTerm] = (),
        form_words: Iterable[str] = (),
        default_group: Sequence[str] = (),
        synonyms: SynonymTable | None = None,
    ) -> None:
        self.elements = tuple(elements)
        self.compounds = tuple(compounds)
        self.combinations = tuple(combinations)
        self.crop_hints = tuple(crop_hints)
        self.general_terms = tuple(general_terms)
        self.form_words = frozenset(w.casefold() for w in form_words)
        self.default_group = tuple(default_group)
        self.synonyms = synonyms or SynonymTable()

    @classmethod
    def from_datasets(cls) -> "NutrientResolver":
        nutrients = load_dataset(NUTRIENTS_FILE)
        terms = load_dataset(QUERY_TERMS_FILE)
        elements = _terms(
            {"tokens": [e.get("symbol")], "phrases": e.get("keys", ())}
            for e in nutrients.get("elements", ())
            if isinstance(e, Mapping) and e.get("symbol")
        )
        return cls(
            elements=elements,
            compounds=_terms(terms.get("compounds")),
            combinations=_terms(terms.get("combinations")),
            crop_hints=_terms(terms.get("crop_hints")),
            general_terms=_terms(terms.get("general_terms")),
            form_words=terms.get("product_form_words", ()),
            default_group=terms.get("default_group", ()),
            synonyms=load_synonyms(),
        )

    def clean_query(self, query: str) -> str:
        """Return the lower-cased query without product form words."""
        words = [w for w in _SPLIT_RE.split(query.casefold()) if w]
        return " ".join(w for w in words if w not in self.form_words)

    def explicit_tokens(self, cleaned: str) -> list[str]:
        """Return tokens named explicitly in ``cleaned`` in discovery order."""

        found: list[str] = []
        text = cleaned

        def _add(tokens: Iterable[str]) -> None:
            for token in tokens:
                if token not in found:
                    found.append(token)

        # Matched compound phrases are blanked so their words are not
        # re-read as element names ("potassium humate" is not K).
        for term in (*self.compounds, *self.combinations):
            hit = False
            for phrase in term.phrases:
                pattern = whole_word_pattern(phrase)
                if pattern.search(text):
                    hit = True
                    text = pattern.sub(" ", text)
            if hit:
                _add(term.tokens)

        for term in self.elements:
            if all(t in found for t in term.tokens):
                continue
            if any(_contains_phrase(text, phrase) for phrase in term.phrases):
                _add(term.tokens)
        return found

    def fallback_groups(self, cleaned: str) -> TokenGroups:
        """Return crop, general or default groups for a query without nutrients."""

        for table in (self.crop_hints, self.general_terms):
            groups = tuple(
                term.tokens
                for term in table
                if any(phrase in cleaned for phrase in term.phrases)
            )
            if groups:
                return groups
        return (self.default_group,) if self.default_group else ()

    def resolve(self, query: str | None) -> NutrientResolution:
        """Resolve ``query`` into token groups and a combinator."""

        raw = query or ""
        cleaned = self.clean_query(raw)
        tokens = self.explicit_tokens(cleaned)
        if tokens:
            groups = group_tokens(tokens, self.synonyms)
            is_fallback = False
        else:
            groups = self.fallback_groups(cleaned)
            is_fallback = True
        resolution = NutrientResolution(
            groups=groups,
            combinator=detect_combinator(raw),
            is_fallback=is_fallback,
        )
        _LOGGER.debug(
            "Resolved %r to %s (%s)", raw, resolution.groups, resolution.combinator.value
        )
        return resolution


@lru_cache(maxsize=1)
def get_resolver() -> NutrientResolver:
    """Return the resolver built from the configured datasets."""
    return NutrientResolver.from_datasets()


def resolve_query(query: str | None) -> NutrientResolution:
    """Resolve ``query`` with the default resolver."""
    return get_resolver().resolve(query)


def get_nutrient_info(token: str) -> Dict[str, str]:
    """Return name and description for ``token`` if it is documented."""

    data = load_dataset(NUTRIENTS_FILE)
    wanted = token.casefold()
    for entry in (*data.get("elements", ()), *data.get("biostimulants", ())):
        if isinstance(entry, Mapping) and str(entry.get("symbol", "")).casefold() == wanted:
            return {
                "symbol": str(entry["symbol"]),
                "name": str(entry.get("name", entry["symbol"])),
                "description": str(entry.get("description", "")),
            }
    return {}


def list_nutrient_combinations() -> list[Dict[str, Any]]:
    """Return the named nutrient combinations offered as search presets."""

    data = load_dataset(COMBINATIONS_FILE)
    if not isinstance(data, list):
        return []
    return [
        {
            "name": str(entry.get("name", "")),
            "description": str(entry.get("description", "")),
            "nutrients": [str(n) for n in entry.get("nutrients", ())],
        }
        for entry in data
        if isinstance(entry, Mapping)
    ]


def clear_cache() -> None:
    """Drop cached vocabulary, synonym and resolver instances."""
    allowed_nutrients.cache_clear()
    load_synonyms.cache_clear()
    get_resolver.cache_clear()
