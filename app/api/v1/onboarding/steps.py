from dataclasses import dataclass, field
from typing import Literal, Optional, Union

ALT_ONBOARDING_VERSION = "alt-onboarding-v1"

Path = Literal["A", "B", "C"]
Stage = Literal["entry", "path", "neutral", "registration", "completed"]
RegistrationSource = Literal["path", "neutral"]
EntryAnswerId = Literal["entry_1", "entry_2", "entry_3", "entry_4", "entry_5"]

# single choice, set of choices, or demographic field map
AnswerValue = Union[str, list[str], dict[str, Union[str, list[str]]]]


@dataclass(frozen=True)
class Option:
    id: str
    label: str
    description: Optional[str] = None
    cta_label: Optional[str] = None
    cta_url: Optional[str] = None


@dataclass(frozen=True)
class DemographicField:
    id: str
    label: str
    options: tuple[Option, ...]
    multiple: bool = False


@dataclass(frozen=True)
class InfoStep:
    id: str
    path: Path
    title: str
    text: str
    kind: Literal["info"] = "info"


@dataclass(frozen=True)
class SingleStep:
    id: str
    path: Path
    title: str
    text: str
    options: tuple[Option, ...]
    kind: Literal["single"] = "single"


@dataclass(frozen=True)
class MultiStep:
    id: str
    path: Path
    title: str
    text: str
    options: tuple[Option, ...]
    kind: Literal["multi"] = "multi"


@dataclass(frozen=True)
class DecisionStep:
    id: str
    path: Path
    title: str
    text: str
    options: tuple[Option, ...]
    kind: Literal["decision"] = "decision"


@dataclass(frozen=True)
class DemographicsStep:
    id: str
    path: Path
    title: str
    text: str
    fields: tuple[DemographicField, ...] = field(default_factory=tuple)
    kind: Literal["demographics"] = "demographics"


Step = Union[InfoStep, SingleStep, MultiStep, DecisionStep, DemographicsStep]


ENTRY_QUESTION = "Wie teilst du deine Gedanken und Erlebnisse am liebsten mit anderen?"

ENTRY_OPTIONS: tuple[Option, ...] = (
    Option("entry_1", "Ich erzähle einfach drauflos", "Schneller Einstieg mit klaren Schritten."),
    Option("entry_2", "Ich brauche Leitfragen", "Geführter Einstieg mit mehr Orientierung."),
    Option("entry_3", "Ich bin noch unsicher", "Behutsam starten und Tempo selbst festlegen."),
    Option("entry_4", "Ich möchte es strukturiert", "Klare Anleitung in kleinen Schritten."),
    Option("entry_5", "Für eine andere Person", "Einrichtung für einen dritten Menschen."),
)

ENTRY_ROUTING: dict[str, Path] = {
    "entry_1": "A",
    "entry_2": "B",
    "entry_3": "B",
    "entry_4": "B",
    "entry_5": "C",
}

PATH_LABELS: dict[str, str] = {
    "A": "Pfad A - Extrovertiert",
    "B": "Pfad B - Geführter Einstieg",
    "C": "Pfad C - Für Dritte",
}

_STANDARD_FIELDS = (
    DemographicField(
        id="ageRange",
        label="Welche Altersgruppe trifft am ehesten zu?",
        options=(
            Option("18_29", "18-29"),
            Option("30_39", "30-39"),
            Option("40_49", "40-49"),
            Option("50_64", "50-64"),
            Option("65_plus", "65+"),
            Option("prefer_not_say", "Keine Angabe"),
        ),
    ),
    DemographicField(
        id="addressingContext",
        label="Wie mögen wir Fragen für dich formulieren?",
        options=(
            Option("very_gentle", "Sehr behutsam"),
            Option("balanced", "Ausgewogen"),
            Option("direct", "Direkt und klar"),
        ),
    ),
    DemographicField(
        id="languagePreference",
        label="In welcher Sprache möchtest du vorwiegend schreiben?",
        options=(
            Option("de", "Deutsch"),
            Option("en", "Englisch"),
            Option("mixed", "Gemischt"),
        ),
    ),
)

_THIRD_PERSON_FIELDS = (
    DemographicField(
        id="relationshipToPerson",
        label="In welcher Beziehung stehen Sie zur Person?",
        options=(
            Option("family", "Familie"),
            Option("friend", "Freundin/Freund"),
            Option("caregiver", "Pflege/Betreuung"),
            Option("other", "Andere"),
        ),
    ),
    DemographicField(
        id="thirdPersonAgeRange",
        label="Welche Altersgruppe trifft auf die Person zu?",
        options=(
            Option("under_40", "Unter 40"),
            Option("40_64", "40-64"),
            Option("65_79", "65-79"),
            Option("80_plus", "80+"),
            Option("unknown", "Unbekannt"),
        ),
    ),
    DemographicField(
        id="thirdPersonLanguagePreference",
        label="Welche Sprache passt für die Fragen am besten?",
        options=(
            Option("de", "Deutsch"),
            Option("en", "Englisch"),
            Option("both", "Beides"),
        ),
    ),
)

PATH_STEPS: dict[str, tuple[Step, ...]] = {
    "A": (
        MultiStep(
            id="A1", path="A", title="Step A1",
            text="Worüber würdest du als Erstes gern erzählen? Eher über dein Leben allgemein, "
                 "bestimmte Erlebnisse oder Menschen, die dir wichtig sind?",
            options=(
                Option("general_life", "Mein Leben allgemein"),
                Option("specific_experiences", "Bestimmte Erlebnisse"),
                Option("important_people", "Wichtige Menschen"),
            ),
        ),
        SingleStep(
            id="A2", path="A", title="Step A2",
            text="Für wen möchtest du das vor allem festhalten?",
            options=(
                Option("for_myself", "Für mich selbst"),
                Option("for_family", "Für Familie"),
                Option("for_children", "Für Kinder/Enkel"),
                Option("for_public_archive", "Für ein offenes Vermächtnis"),
            ),
        ),
        DemographicsStep(
            id="A3", path="A", title="Step A3",
            text="Wir möchten dir möglichst passende Fragen stellen. "
                 "Bitte ordne dich deshalb im Folgenden zu:",
            fields=_STANDARD_FIELDS,
        ),
        DecisionStep(
            id="A4", path="A", title="Step A4",
            text="Alles klar, möchtest du jetzt direkt mit deiner ersten Erzählung starten?",
            options=(
                Option("start_storytelling", "Ja, zuerst Storytelling starten"),
                Option("go_registration", "Nein, direkt Registrierung"),
            ),
        ),
    ),
    "B": (
        SingleStep(
            id="B1", path="B", title="Step B1",
            text="Wie möchtest du deine Erlebnisse, Erfahrungen, Gedanken am liebsten festhalten?",
            options=(
                Option("guided_questions", "Mit geführten Fragen"),
                Option("free_talk", "Erst frei erzählen, dann strukturieren"),
                Option(
                    "book_call", "Mit professioneller Begleitung",
                    description="Du kannst direkt einen Termin buchen.",
                    cta_label="Termin buchen",
                    cta_url="https://calendar.app.google/hTLQhe9koce2qVXp9",
                ),
            ),
        ),
        SingleStep(
            id="B2", path="B", title="Step B2",
            text="Wie persönlich dürfen die Fragen für dich am Anfang sein?",
            options=(
                Option("light", "Eher leicht und vorsichtig"),
                Option("medium", "Ausgewogen"),
                Option("deep", "Ich bin offen für tiefere Fragen"),
            ),
        ),
        MultiStep(
            id="B3", path="B", title="Step B3",
            text="Was ist dir bei Nality am wichtigsten?",
            options=(
                Option("clarity", "Klare Struktur"),
                Option("privacy", "Datenschutz"),
                Option("pace", "Eigenes Tempo"),
                Option("family_legacy", "Etwas für Familie hinterlassen"),
            ),
        ),
        DecisionStep(
            id="B4", path="B", title="Step B4",
            text="Damit wir dir passende Fragen in deinem Tempo anbieten können, richten wir dir "
                 "jetzt deinen persönlichen Bereich ein. Du bestimmst jederzeit, was du teilen möchtest.",
            options=(
                Option("continue_guided", "Weiter zur Zuordnung"),
                Option("jump_to_neutral", "Vorher neutral Storytelling ansehen"),
            ),
        ),
        DemographicsStep(
            id="B5", path="B", title="Step B5",
            text="Im ersten Schritt hast du die Möglichkeit dich zuzuordnen. "
                 "Das hilft uns, dir möglichst passende Fragen zu stellen.",
            fields=_STANDARD_FIELDS,
        ),
    ),
    "C": (
        InfoStep(
            id="C1", path="C", title="Step C1",
            text="Super, dann richten wir in weniger als 1 Minute einen persönlichen "
                 "Erinnerungsraum ein.",
        ),
        DemographicsStep(
            id="C2", path="C", title="Step C2",
            text="Um den persönlichen Erinnerungsraum bestmöglich nutzen zu können, "
                 "teilen Sie uns bitte mit:",
            fields=_THIRD_PERSON_FIELDS,
        ),
    ),
}

# Where a user lands in their path when registration is left via "back".
REGISTRATION_ANCHORS: dict[str, str] = {"A": "A4", "B": "B5", "C": "C2"}
# Where a user resumes after leaving the neutral storytelling block.
NEUTRAL_RETURN_ANCHORS: dict[str, str] = {"A": "A4", "B": "B4", "C": "C2"}


def is_valid_path(value: object) -> bool:
    return value in PATH_STEPS


def get_path_from_entry_answer(answer_id: str) -> Optional[Path]:
    return ENTRY_ROUTING.get(answer_id)


def get_step_ids(path: Path) -> list[str]:
    return [step.id for step in PATH_STEPS[path]]


def get_step_by_id(path: Path, step_id: Optional[str]) -> Optional[Step]:
    for step in PATH_STEPS[path]:
        if step.id == step_id:
            return step
    return None


def get_first_step(path: Path) -> Step:
    return PATH_STEPS[path][0]


def get_next_step(path: Path, step_id: str) -> Optional[Step]:
    ids = get_step_ids(path)
    if step_id not in ids:
        return None
    index = ids.index(step_id)
    if index + 1 >= len(ids):
        return None
    return PATH_STEPS[path][index + 1]


def get_registration_anchor_step_id(path: Path) -> str:
    return REGISTRATION_ANCHORS[path]
