"""
Rule-based extraction of identity and birth data from German onboarding answers.

The identity answer typically reads like "Gerne per du, ich heiße Max Mustermann"
and the origins answer like "Geboren am 15. März 1990 in München". Input often
comes from voice transcription, so punctuation and capitalization are treated
as unreliable.
"""
import re
from datetime import date
from typing import Iterable, Literal, Optional, TypedDict


class ExtractedIdentity(TypedDict, total=False):
    form_of_address: Literal["du", "sie"]
    language_style: Literal["prosa", "fachlich", "locker"]
    full_name: str


class ExtractedBirthData(TypedDict, total=False):
    birth_date: str
    birth_place: str


# =============================================================================
# Identity
# =============================================================================

_ADDRESS_CUES: list[tuple[str, re.Pattern]] = [
    (form, re.compile(pattern.format(word=form)))
    for form in ("du", "sie")
    for pattern in (
        r"\bper {word}\b",
        r"\bgerne {word}\b",
        r"\blieber {word}\b",
        r"\b{word}\s*,",
        r"^{word}\b",
        r"\b{word}z",
    )
]

# Checked in this order, first category with a hit wins.
_STYLE_TRIGGERS: list[tuple[str, tuple[str, ...]]] = [
    ("prosa", (r"\bprosa", r"\berzähl", r"\bnarrati", r"\bliterar")),
    ("fachlich", (r"\bfachlich", r"\bstruktur", r"\bprofession", r"\bsachlich")),
    ("locker", (r"\blocker\b", r"\bentspannt", r"\bcasual", r"\blässig")),
]

_NAME_TRIGGER = re.compile(
    r"\b(?:ich\s+hei(?:ß|ss)e|ich\s+bin|mein\s+name\s+ist)\s+", re.IGNORECASE)
_NAME_AFTER_ADDRESS = re.compile(r"\b(?:du|sie)\s*,\s*", re.IGNORECASE)

_NAME_TITLES = {"dr", "prof", "dipl", "ing"}
_CLAUSE_STARTERS = {
    "kannst", "können", "könnt", "bitte", "und", "aber", "per", "gerne", "gern",
    "möchte", "würde", "ich", "du", "sie", "mag", "lieber", "wobei", "also",
    "oder", "mein", "meine", "sag", "sagen", "nenn", "nenne", "nennen",
}
_NON_NAME_STARTERS = {
    "am", "im", "in", "aus", "seit", "ein", "eine", "der", "die", "das", "dem",
    "den", "gerne", "gern", "sehr", "noch", "nicht", "auch", "hier", "da", "so",
    "jetzt", "schon", "eher", "geboren", "mit", "bei", "von", "zu", "ganz",
    "prosa", "fachlich", "locker", "entspannt", "strukturiert", "casual",
}
_MAX_NAME_TOKENS = 6
_TRAILING_PUNCT = ".,!?;:"


def _detect_form_of_address(lower: str) -> Optional[str]:
    # Every du cue is tried before any sie cue.
    for form, pattern in _ADDRESS_CUES:
        if pattern.search(lower):
            return form
    return None


def _detect_language_style(lower: str) -> Optional[str]:
    for style, triggers in _STYLE_TRIGGERS:
        if any(re.search(trigger, lower) for trigger in triggers):
            return style
    return None


def _read_name(rest: str) -> Optional[str]:
    collected: list[str] = []
    for token in rest.split():
        bare = token.strip(_TRAILING_PUNCT + "\"'()")
        lowered = bare.lower()
        if not collected:
            if not bare or not bare[0].isalpha() or lowered in _NON_NAME_STARTERS \
                    or lowered in _CLAUSE_STARTERS:
                return None
        elif not bare or lowered in _CLAUSE_STARTERS or any(c.isdigit() for c in bare):
            break

        if lowered in _NAME_TITLES and token.endswith("."):
            collected.append(bare + ".")
            continue

        collected.append(bare)
        if token[-1] in _TRAILING_PUNCT or len(collected) >= _MAX_NAME_TOKENS:
            break

    # A lone title is not a name.
    if not collected or all(t.rstrip(".").lower() in _NAME_TITLES for t in collected):
        return None
    return " ".join(collected)


def _extract_name(text: str) -> Optional[str]:
    for pattern in (_NAME_TRIGGER, _NAME_AFTER_ADDRESS):
        for match in pattern.finditer(text):
            name = _read_name(text[match.end():])
            if name:
                return name
    return None


def extract_user_data(answer_text: str) -> ExtractedIdentity:
    """Extract address form, language style and name from an identity answer.

    "Ich heiße Max, bitte per du." -> {"form_of_address": "du", "full_name": "Max"}
    """
    text = " ".join(answer_text.split())
    lower = text.lower()
    result: ExtractedIdentity = {}

    form = _detect_form_of_address(lower)
    if form:
        result["form_of_address"] = form

    style = _detect_language_style(lower)
    if style:
        result["language_style"] = style

    name = _extract_name(text)
    if name:
        result["full_name"] = name

    return result


# =============================================================================
# Birth data
# =============================================================================

MONTHS: dict[str, int] = {
    "januar": 1, "februar": 2, "märz": 3, "maerz": 3, "april": 4, "mai": 5,
    "juni": 6, "juli": 7, "august": 8, "september": 9, "oktober": 10,
    "november": 11, "dezember": 12,
    "january": 1, "february": 2, "march": 3, "may": 5, "june": 6, "july": 7,
    "october": 10, "december": 12,
}

_MONTH_NAME_DATE = re.compile(
    r"(?<!\d)(\d{1,2})\.?\s*(" + "|".join(MONTHS) + r")\.?\s*(\d{4})(?!\d)",
    re.IGNORECASE,
)
_NUMERIC_DATE = re.compile(r"(?<!\d)(\d{1,2})[./](\d{1,2})[./](\d{4}|\d{2})(?!\d)")
_BARE_YEAR = re.compile(r"(?<!\d)(19\d{2}|20\d{2})(?!\d)")

# Sentence ends; a period right after a digit belongs to a date.
_CLAUSE_SPLIT = re.compile(r"[!?;\n]|(?<!\d)\.(?=\s|$)")
_CONJUNCTION_SPLIT = re.compile(r"\b(?:und|aber|sondern|dann|danach)\b", re.IGNORECASE)
_BIRTH_VERB = re.compile(r"\bgeboren\b", re.IGNORECASE)
_PLACE_PREPOSITION = re.compile(r"\b(?:in|aus)\s+", re.IGNORECASE)

_PLACE_STOPWORDS = {
    "geboren", "und", "aber", "als", "am", "im", "wo", "wurde", "worden", "bin",
    "ist", "war", "seit", "mit", "bei", "auf", "zur", "zum", "habe", "hat", "ich",
    "wir", "er", "sie", "es", "der", "die", "das", "dem", "den", "des", "ein",
    "eine", "einem", "einer", "in", "aus", "von", "nach", "bis", "oder", "aufgewachsen",
    "gelebt", "lebe", "wohne", "wohnte", "jahr", "jahre", "jahren",
    "the", "and", "a", "an", "or",
}
_MAX_PLACE_TOKENS = 5
_PLACE_CONNECTORS = (("an", "der"), ("am",), ("im",))
_NOT_PLACE_WORDS = set(MONTHS) | {
    "montag", "dienstag", "mittwoch", "donnerstag", "freitag", "samstag", "sonntag",
    "wochenende", "anfang", "ende", "tag", "abend", "morgen",
}


def _safe_date(year: int, month: int, day: int) -> Optional[str]:
    try:
        return date(year, month, day).isoformat()
    except ValueError:
        return None


def _expand_year(raw: str) -> int:
    year = int(raw)
    if len(raw) == 2:
        return 2000 + year if year < 50 else 1900 + year
    return year


def _month_name_dates(text: str) -> Iterable[Optional[str]]:
    for m in _MONTH_NAME_DATE.finditer(text):
        yield _safe_date(int(m.group(3)), MONTHS[m.group(2).lower()], int(m.group(1)))


def _numeric_dates(text: str) -> Iterable[Optional[str]]:
    # Day first, German convention.
    for m in _NUMERIC_DATE.finditer(text):
        yield _safe_date(_expand_year(m.group(3)), int(m.group(2)), int(m.group(1)))


def _bare_years(text: str) -> Iterable[Optional[str]]:
    for m in _BARE_YEAR.finditer(text):
        yield f"{m.group(1)}-01-01"


def _extract_birth_date(text: str) -> Optional[str]:
    for rule in (_month_name_dates, _numeric_dates, _bare_years):
        for candidate in rule(text):
            if candidate:
                return candidate
    return None


def _connector_length(tokens: list[str], i: int) -> int:
    """Tokens taken by a place-name connector at ``tokens[i]`` ("am", "an der"), or 0."""
    lower = [t.strip(".,:!?;\"'()").lower() for t in tokens[i:i + 3]]
    for connector in _PLACE_CONNECTORS:
        n = len(connector)
        if tuple(lower[:n]) != connector or len(tokens) <= i + n:
            continue
        following = tokens[i + n].strip(".,:!?;\"'()")
        if following[:1].isupper() and following.lower() not in _NOT_PLACE_WORDS:
            return n
    return 0


def _read_place(rest: str, require_capital: bool = False) -> Optional[str]:
    tokens = rest.split()
    collected: list[str] = []
    i = 0
    while i < len(tokens):
        token = tokens[i]
        bare = token.strip(".,:!?;\"'()")
        # Frankfurt am Main, Frankfurt an der Oder
        if collected and not collected[-1].endswith(","):
            n = _connector_length(tokens, i)
            if n:
                collected.extend(t.strip(".,:!?;\"'()") for t in tokens[i:i + n])
                i += n
                continue
        if not bare or bare.lower() in _PLACE_STOPWORDS or any(c.isdigit() for c in bare):
            break
        if not collected and (not bare[0].isalpha() or (require_capital and not bare[0].isupper())):
            return None
        collected.append(bare)
        if len(collected) >= _MAX_PLACE_TOKENS:
            break
        # "Bogotá, Kolumbien" continues past the comma, anything else ends the place.
        if token.endswith(","):
            collected[-1] += ","
        elif token[-1] in ".:!?;\"')":
            break
        i += 1
    return " ".join(collected).rstrip(",") or None


def _extract_birth_place(text: str) -> Optional[str]:
    clauses = [
        part
        for sentence in _CLAUSE_SPLIT.split(text)
        for part in _CONJUNCTION_SPLIT.split(sentence)
        if part.strip()
    ]

    for clause in clauses:
        verb = _BIRTH_VERB.search(clause)
        if not verb:
            continue
        # geboren ... in <place>
        for m in _PLACE_PREPOSITION.finditer(clause, verb.end()):
            place = _read_place(clause[m.end():])
            if place:
                return place
        # in <place> ... geboren
        for m in _PLACE_PREPOSITION.finditer(clause, 0, verb.start()):
            place = _read_place(clause[m.end():verb.start()])
            if place:
                return place

    # "1990 in München" has no birth verb at all.
    for m in _PLACE_PREPOSITION.finditer(text):
        place = _read_place(text[m.end():], require_capital=True)
        if place:
            return place
    return None


def extract_birth_data(answer_text: str) -> ExtractedBirthData:
    """Extract birth date (YYYY-MM-DD) and birth place from an origins answer."""
    text = " ".join(answer_text.split())
    result: ExtractedBirthData = {}

    birth_date = _extract_birth_date(text)
    if birth_date:
        result["birth_date"] = birth_date

    birth_place = _extract_birth_place(text)
    if birth_place:
        result["birth_place"] = birth_place

    return result
