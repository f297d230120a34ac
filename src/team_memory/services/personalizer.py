"""
Personalization of content before it is stored in team memory.

A memory written by one team member ("I prefer tabs", "mi proyecto usa
FastAPI") is rewritten so it reads as a statement about that member
("Chris prefers tabs", "proyecto de Chris usa FastAPI") once it is shared
with the rest of the team.

The rewrite is purely lexical. Each language contributes an ordered list of
regular-expression rules, grouped in stages:

1. existing mentions of the identity are protected,
2. multi-word phrases ("I love", "me gusta"), longest first,
3. single-word pronouns and possessives,
4. verb forms directly following a rewritten subject pronoun,
5. generic role nouns ("the user", "el usuario").

Every match is swapped for a placeholder token so later rules never see text
an earlier rule already handled. Tokens are expanded to their final text in
a fixed order and protected mentions are restored last.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import TYPE_CHECKING, Dict, List, Optional, Sequence, Tuple

if TYPE_CHECKING:
    from ..config.config_manager import AppConfig

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGES: Tuple[str, ...] = ("es", "en")

# Pairs of private-use code points delimiting placeholder tokens. The first
# pair absent from the input is used.
SENTINEL_PAIRS: Tuple[Tuple[str, str], ...] = (
    ("\ue000", "\ue001"),
    ("\ue002", "\ue003"),
    ("\uf8f0", "\uf8f1"),
    ("\U000f0000", "\U000f0001"),
)


class Role(str, Enum):
    """Grammatical role of a rule; each role renders differently."""
    PHRASE = "phrase"
    SUBJECT = "subject"
    OBJECT = "object"
    POSSESSIVE = "possessive"
    VERB = "verb"
    GENERIC = "generic"


# Order in which rule stages run against the text.
STAGES: Tuple[Tuple[Role, ...], ...] = (
    (Role.PHRASE,),
    (Role.SUBJECT, Role.OBJECT, Role.POSSESSIVE),
    (Role.VERB,),
    (Role.GENERIC,),
)

# Order in which placeholder tokens are expanded.
EXPANSION_ORDER: Tuple[Role, ...] = (
    Role.PHRASE,
    Role.SUBJECT,
    Role.OBJECT,
    Role.POSSESSIVE,
    Role.VERB,
    Role.GENERIC,
)


@dataclass(frozen=True)
class RewriteRule:
    """
    One substitution.

    ``pattern`` is matched case-insensitively as a whole word. ``expansion``
    is the final text, with ``{identity}`` filled in at expansion time.
    ``keep`` is re-emitted in front of the placeholder and may reference
    groups captured by ``pattern``.
    """
    pattern: str
    role: Role
    expansion: str
    keep: str = ""


def _phrases(*pairs: Tuple[str, str]) -> Tuple[RewriteRule, ...]:
    rules = [RewriteRule(pattern, Role.PHRASE, expansion) for pattern, expansion in pairs]
    return tuple(sorted(rules, key=lambda rule: len(rule.pattern), reverse=True))


def _words(role: Role, *pairs: Tuple[str, str]) -> Tuple[RewriteRule, ...]:
    return tuple(RewriteRule(pattern, role, expansion) for pattern, expansion in pairs)


_APOSTROPHE = "['’]"

ENGLISH_RULES: Tuple[RewriteRule, ...] = (
    *_phrases(
        (r"I\s+love", "{identity} loves"),
        (r"I\s+like", "{identity} likes"),
        (r"I\s+prefer", "{identity} prefers"),
        (r"I\s+hate", "{identity} hates"),
        (r"I\s+enjoy", "{identity} enjoys"),
        (r"I\s+want", "{identity} wants"),
        (r"I\s+need", "{identity} needs"),
        (rf"I{_APOSTROPHE}m", "{identity} is"),
        (rf"I{_APOSTROPHE}ve", "{identity} has"),
        (rf"I{_APOSTROPHE}ll", "{identity} will"),
        (rf"I{_APOSTROPHE}d", "{identity} would"),
    ),
    *_words(Role.SUBJECT, (r"I", "{identity}")),
    *_words(Role.OBJECT, (r"myself", "{identity}"), (r"me", "{identity}")),
    *_words(Role.POSSESSIVE, (r"mine", "{identity}'s"), (r"my", "{identity}'s")),
    *_words(
        Role.VERB,
        (r"am", "is"),
        (r"have", "has"),
        (r"do", "does"),
        (rf"don{_APOSTROPHE}t", "doesn't"),
        (rf"haven{_APOSTROPHE}t", "hasn't"),
        (r"think", "thinks"),
        (r"work", "works"),
        (r"use", "uses"),
        (r"know", "knows"),
    ),
    *_words(Role.GENERIC, (r"the\s+user", "{identity}")),
)

SPANISH_RULES: Tuple[RewriteRule, ...] = (
    *_phrases(
        (r"a\s+m[ií]\s+me\s+gustan", "a {identity} le gustan"),
        (r"a\s+m[ií]\s+me\s+gusta", "a {identity} le gusta"),
        (r"a\s+m[ií]\s+me\s+encantan", "a {identity} le encantan"),
        (r"a\s+m[ií]\s+me\s+encanta", "a {identity} le encanta"),
        (r"me\s+gustan", "a {identity} le gustan"),
        (r"me\s+gusta", "a {identity} le gusta"),
        (r"me\s+encantan", "a {identity} le encantan"),
        (r"me\s+encanta", "a {identity} le encanta"),
        (r"me\s+interesan", "a {identity} le interesan"),
        (r"me\s+interesa", "a {identity} le interesa"),
        (r"yo\s+prefiero", "{identity} prefiere"),
        (r"prefiero", "{identity} prefiere"),
    ),
    *_words(Role.SUBJECT, (r"yo", "{identity}")),
    *_words(Role.OBJECT, (r"conmigo", "con {identity}"), (r"mí", "{identity}")),
    RewriteRule(r"mis?\s+(\w+)", Role.POSSESSIVE, "de {identity}", keep=r"\1 "),
    *_words(Role.POSSESSIVE, (r"m[ií][oa]s?", "de {identity}")),
    *_words(
        Role.VERB,
        (r"soy", "es"),
        (r"estoy", "está"),
        (r"tengo", "tiene"),
        (r"quiero", "quiere"),
        (r"necesito", "necesita"),
        (r"trabajo", "trabaja"),
        (r"uso", "usa"),
        (r"creo", "cree"),
        (r"pienso", "piensa"),
        (r"sé", "sabe"),
        (r"voy", "va"),
        (r"puedo", "puede"),
        (r"hago", "hace"),
    ),
    *_words(
        Role.GENERIC,
        (r"del\s+usuario", "de {identity}"),
        (r"al\s+usuario", "a {identity}"),
        (r"el\s+usuario", "{identity}"),
        (r"la\s+usuaria", "{identity}"),
    ),
)

RULE_SETS: Dict[str, Tuple[RewriteRule, ...]] = {
    "en": ENGLISH_RULES,
    "es": SPANISH_RULES,
}


@lru_cache(maxsize=512)
def _compile(pattern: str) -> "re.Pattern[str]":
    return re.compile(pattern, re.IGNORECASE)


def _whole_word(pattern: str) -> str:
    return rf"(?<!\w)(?:{pattern})(?!\w)"


def _choose_sentinels(*texts: str) -> Optional[Tuple[str, str]]:
    for opening, closing in SENTINEL_PAIRS:
        if not any(opening in text or closing in text for text in texts):
            return opening, closing
    return None


class _RewriteSession:
    """Placeholder bookkeeping for a single personalize() call."""

    def __init__(self, identity: str, sentinels: Tuple[str, str]):
        self.identity = identity
        self.opening, self.closing = sentinels
        self.protected: List[Tuple[str, str]] = []
        self.tokens: Dict[Role, List[Tuple[str, str]]] = {role: [] for role in Role}
        self.subject_tokens: List[str] = []
        self._counter = 0

    def _next_token(self) -> str:
        self._counter += 1
        return f"{self.opening}{self._counter}{self.closing}"

    def protect(self, text: str) -> str:
        pattern = _compile(_whole_word(re.escape(self.identity)))

        def _swap(match: "re.Match[str]") -> str:
            token = self._next_token()
            self.protected.append((token, match.group(0)))
            return token

        return pattern.sub(_swap, text)

    def apply(self, rule: RewriteRule, text: str) -> str:
        token = self._next_token()

        if rule.role is Role.VERB:
            if not self.subject_tokens:
                return text
            anchor = "|".join(re.escape(t) for t in self.subject_tokens)
            pattern = _compile(rf"({anchor})(\s+){_whole_word(rule.pattern)}")
            result, count = pattern.subn(lambda m: m.group(1) + m.group(2) + token, text)
        else:
            pattern = _compile(_whole_word(rule.pattern))
            result, count = pattern.subn(lambda m: m.expand(rule.keep) + token, text)

        if count:
            expansion = rule.expansion.replace("{identity}", self.identity)
            self.tokens[rule.role].append((token, expansion))
            if rule.role is Role.SUBJECT:
                self.subject_tokens.append(token)
        return result

    def expand(self, text: str) -> str:
        for role in EXPANSION_ORDER:
            for token, expansion in self.tokens[role]:
                text = text.replace(token, expansion)
        return text

    def restore(self, text: str) -> str:
        # Mentions come back exactly as written, whatever their casing
        for token, original in self.protected:
            text = text.replace(token, original)
        return text


def personalize(
    text: str,
    identity: str,
    languages: Sequence[str] = DEFAULT_LANGUAGES,
) -> str:
    """
    Rewrite first-person and generic references in ``text`` to ``identity``.

    Never raises. Empty text, an empty identity, or text that cannot be
    tokenized safely is returned unchanged.

    Args:
        text: Content to personalize
        identity: Name the content should be attributed to
        languages: Rule sets to apply, in order

    Returns:
        Personalized text
    """
    if not isinstance(text, str) or not text:
        return text
    if not isinstance(identity, str) or not identity.strip():
        return text

    identity = identity.strip()
    sentinels = _choose_sentinels(text, identity)
    if sentinels is None:
        logger.debug("No free placeholder delimiters for input, leaving text unchanged")
        return text

    session = _RewriteSession(identity, sentinels)
    result = session.protect(text)

    for language in languages:
        rules = RULE_SETS.get(language)
        if rules is None:
            logger.debug(f"No personalization rules for language '{language}'")
            continue
        for stage in STAGES:
            for rule in rules:
                if rule.role in stage:
                    result = session.apply(rule, result)

    result = session.restore(session.expand(result))
    return result


class Personalizer:
    """Personalization bound to one identity and a list of active languages."""

    def __init__(
        self,
        identity: str,
        languages: Sequence[str] = DEFAULT_LANGUAGES,
        enabled: bool = True,
    ):
        self.identity = identity
        self.languages = tuple(languages)
        self.enabled = enabled

    @classmethod
    def from_config(cls, config: "AppConfig") -> "Personalizer":
        return cls(
            identity=config.user.default_user_id,
            languages=config.personalization.languages,
            enabled=config.personalization.enabled,
        )

    def personalize(self, text: str) -> str:
        if not self.enabled:
            return text
        return personalize(text, self.identity, self.languages)

    __call__ = personalize

    def __repr__(self) -> str:
        return f"Personalizer(identity={self.identity!r}, languages={self.languages!r}, enabled={self.enabled})"
