# Pattern library for screenplay quality control.
#
# Every lexical heuristic the scorers, the tic budget enforcer and the loop
# detector rely on is declared here as a PatternRule, grouped by consumer in a
# PatternLibrary. Nothing in this module touches document state.

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterator

# ---------------------------------------------------------------------------
# Rule types
# ---------------------------------------------------------------------------

CATEGORIES = frozenset({
    "clinical", "on-the-nose", "banger", "purple-prose", "technobabble", "tic",
    "sensory", "messiness", "reset", "stakes", "thematic-hammer",
    "subtext-absence", "dialogue-uniformity", "repetition", "summary-ending",
    "generation-bug", "opening-image", "action-tell", "exit-cliche",
})
SCOPES = frozenset({"document", "dialogue"})


@dataclass(frozen=True)
class PatternMatch:
    rule: str
    text: str
    start: int
    end: int

    def to_payload(self) -> dict[str, object]:
        return {"rule": self.rule, "text": self.text, "start": self.start, "end": self.end}


@dataclass(frozen=True)
class PatternRule:
    """A named lexical matcher with its category and optional thresholds.

    Attributes:
        name: Unique rule name, used as the key for match lists and budgets.
        category: One of ``CATEGORIES``.
        patterns: Compiled regexes; a rule matches wherever any of them does.
        severity_weight: Per-match (or per-tier) penalty weight used by scorers.
        max_count: Per-document cap for budgeted tics and motifs.
        cooldown_words: Minimum word distance between consecutive occurrences.
        scope: ``"document"`` runs against the whole text, ``"dialogue"`` only
            against the concatenated dialogue lines.
    """

    name: str
    category: str
    patterns: tuple[re.Pattern[str], ...]
    severity_weight: float = 1.0
    max_count: int | None = None
    cooldown_words: int | None = None
    scope: str = "document"

    def __post_init__(self) -> None:
        if self.category not in CATEGORIES:
            raise ValueError(f"Unknown pattern category {self.category!r} for rule {self.name!r}")
        if self.scope not in SCOPES:
            raise ValueError(f"Unknown scope {self.scope!r} for rule {self.name!r}")
        if not self.patterns:
            raise ValueError(f"Rule {self.name!r} has no patterns")
        if self.max_count is not None and self.max_count < 0:
            raise ValueError(f"Rule {self.name!r} has a negative max_count")
        if self.cooldown_words is not None and self.cooldown_words <= 0:
            raise ValueError(f"Rule {self.name!r} needs a positive cooldown")

    def finditer(self, text: str) -> Iterator[re.Match[str]]:
        for pattern in self.patterns:
            yield from pattern.finditer(text)

    def matches(self, text: str) -> list[PatternMatch]:
        found = [PatternMatch(self.name, m.group(0), m.start(), m.end()) for m in self.finditer(text)]
        found.sort(key=lambda m: (m.start, m.end))
        return found

    def count(self, text: str) -> int:
        return sum(1 for _ in self.finditer(text))

    def search(self, text: str) -> re.Match[str] | None:
        for pattern in self.patterns:
            m = pattern.search(text)
            if m:
                return m
        return None


def _rule(
    name: str,
    category: str,
    *sources: str,
    flags: int = re.IGNORECASE,
    **options,
) -> PatternRule:
    return PatternRule(
        name=name,
        category=category,
        patterns=tuple(re.compile(s, flags) for s in sources),
        **options,
    )


# ---------------------------------------------------------------------------
# Dialogue and vocabulary tells
# ---------------------------------------------------------------------------

CLINICAL = (
    _rule(
        "clinical_vocabulary", "clinical",
        r"it shall\b", r"it is imperative", r"highly irregular", r"sufficient for",
        r"I require\b", r"it would appear", r"one might suggest", r"most certainly",
        r"precisely so", r"affirmative\b", r"negative\b", r"acknowledged\b",
        r"in my estimation", r"spatial logistics",
        severity_weight=0.5,
    ),
)

ON_THE_NOSE = (
    _rule(
        "on_the_nose_dialogue", "on-the-nose",
        r"I feel (so )?(angry|sad|happy|scared|betrayed|hurt|confused)",
        r"I('m| am) (so )?(angry|sad|happy|scared|confused|devastated)",
        r"You make me feel",
        r"I need you to understand",
        r"What I('m| am) trying to say is",
        r"The truth is,? I",
        r"I have to be honest",
        r"Can I be honest with you",
        r"I('m| am) feeling",
        r"My feelings are",
        severity_weight=0.3,
    ),
)

BANGER = (
    _rule(
        "banger_dialogue", "banger",
        r"The (truth|reality|problem) is[,.]?",
        r"What (really )?matters (most )?is",
        r"In the end,",
        r"When you (really )?think about it",
        r"Life is (about|like|just)",
        r"The thing about .+ is",
        r"What does it (even )?mean to",
        r"Who are we (really|truly)",
        r"What makes us (truly )?human",
        r"Everything (has )?changed",
        r"Nothing will ever be the same",
        r"This changes everything",
        r"There's no going back",
        r"In a world where",
        r"When all hope (seems|is) lost",
        r"One (man|woman|person) must",
    ),
)

PURPLE_PROSE = (
    _rule(
        "purple_prose", "purple-prose",
        r"dust motes? (dance|float|drift|swirl)",
        r"cathedral of",
        r"velvet (hammer|voice|darkness|silence)",
        r"silk(en|y)? (voice|tone|thread)",
        r"(golden|amber|honey) (light|glow|hue)",
        r"fingers? (of light|of shadow|of dawn|of dusk)",
        r"tapestry of",
        r"symphony of",
        r"ballet of",
        r"dance of (shadow|light|death|life)",
        r"mosaic of",
        r"kaleidoscope of",
        r"with the grace of",
        r"like a (wounded|dying|fallen) (animal|bird|angel)",
        r"ocean of (emotion|feeling|grief|sorrow)",
        r"weight of (the world|history|time|silence)",
        r"ghost of a (smile|laugh|memory)",
        r"pregnant (pause|silence|moment)",
        r"deafening silence",
        r"palpable tension",
        r"electric (silence|tension|atmosphere)",
    ),
)

TECHNOBABBLE = (
    _rule("code_conditionals", "technobabble", r"\bif\s*\([^)]+\)\s*(then|{)"),
    _rule("system_vocabulary", "technobabble", r"\b(protocol|algorithm|subroutine|interface|parameter)\b"),
    _rule("data_vocabulary", "technobabble", r"\b(sync|hash|node|buffer|cache|loop)\b"),
    _rule("process_verbs", "technobabble", r"\b(execute|initialize|terminate|propagate)\b"),
    _rule("starred_identifiers", "technobabble", r"\*[A-Z_]+\*", flags=0),
    _rule("recursion_vocabulary", "technobabble", r"\b(recursion|asynchronous|recursiv)"),
    _rule("probability_speak", "technobabble", r"\b(the probability of|statistical likelihood)"),
    _rule("cascade_vocabulary", "technobabble", r"\b(cascade|propagation|iteration)\b"),
)

WORD_REPETITION = (
    _rule(
        "word_repetition", "repetition",
        r"(\b\w+)\.\s*\1\.",
        r"(\b\w+)\s+\1\b",
        r"\b(I'm|I am)\s+\w+\.\s*(I'm|I am)\s+\w+\.",
    ),
)

SUMMARY_ENDINGS = (
    _rule(
        "summary_endings", "summary-ending",
        r",\s*which said everything",
        r"--\s*not that it matter",
        r",\s*somehow\.?$",
        r"\.\s*It was enough\.?",
        r"\.\s*And that was that\.?",
        r",\s*in a way\.?$",
        r"\.\s*But still\.?$",
        r",\s*for what it('s| is|was) worth",
        r"\.\s*It meant everything\.",
        r"\.\s*It meant nothing\.",
        flags=re.IGNORECASE | re.MULTILINE,
    ),
)

LOWERCASE_BUG = (
    _rule("lowercase_after_terminal", "generation-bug", r"[.!?]\s+[a-z]", flags=0),
)

DOUBLE_PUNCTUATION = (
    _rule("double_punctuation", "generation-bug", r"[,.]\.|\.,", flags=0),
)

# Over-injection limits: count > max is one tier, count > 3 * max is two tiers.
VERBAL_TICS = (
    _rule("ellipsis", "messiness", r"\.\.\.", flags=0, max_count=25, severity_weight=0.5),
    _rule("stutter_dash", "messiness", r"--", flags=0, max_count=15, severity_weight=0.4),
    _rule("letter_stutter", "messiness", r"\b([a-zA-Z])-\1", max_count=10, severity_weight=0.3),
    _rule("false_start_no", "messiness", r"-- No\. ", max_count=3, severity_weight=1.0),
)

# ---------------------------------------------------------------------------
# Motifs, props and budgets
# ---------------------------------------------------------------------------

# Singular "watch" only: "watches" is nearly always the verb in action lines.
_WATCH_NOT_VERB = (
    r"(?!\s*(tower|man|woman|dog|out|over|your|my|the\s+movie|him|her|them|it|this"
    r"|that|me|you|carefully|closely|for|as|while|what))"
)
_GUN = r"\b(gun(s)?|pistol(s)?|revolver(s)?|weapon(s)?|firearm(s)?)\b"
_CIGARETTE = r"\b(cigarette(s)?|cig(s)?|lighter(s)?|ash(es)?)\b(?!\s*(alarm|detector))"

TICS = (
    _rule("glasses", "tic", r"(clean|wipe|polish|adjust|push|remove)s?\s+(his|her|their)?\s*(glasses|spectacles)", max_count=8),
    _rule("watch", "tic", r"\bwatch\b" + _WATCH_NOT_VERB, max_count=4),
    _rule("sigh", "tic", r"\bsigh(s|ed|ing)?\b", max_count=16),
    _rule("nod", "tic", r"\bnod(s|ded|ding)?\b", max_count=24),
    _rule("cigarette", "tic", _CIGARETTE, max_count=5),
    _rule("gun", "tic", _GUN, max_count=6),
    _rule("jaw_clench", "tic", r"clench(es|ing|ed)?\s+(his|her|their)\s+jaw"),
    _rule("fist_ball", "tic", r"ball(s|ing|ed)?\s+(his|her|their)\s+fist"),
    _rule("throat_clear", "tic", r"clear(s|ing|ed)?\s+(his|her|their)\s+throat"),
    _rule("deep_breath", "tic", r"take(s)?\s+a\s+deep\s+breath"),
)

PROPS = (
    _rule("watch", "tic", r"\bwatch\b" + _WATCH_NOT_VERB, cooldown_words=2000),
    _rule("gun", "tic", _GUN, cooldown_words=1500),
    _rule("phone", "tic", r"\b(phone(s)?|cell(s)?|mobile(s)?|smartphone(s)?)\b", cooldown_words=1200),
)

# Budgets enforced across generation passes.
MOTIFS = (
    _rule("watch", "tic", r"\b(watch|wristwatch)\b" + _WATCH_NOT_VERB, max_count=4),
    _rule("gun", "tic", _GUN, max_count=6),
    _rule("cigarette", "tic", _CIGARETTE, max_count=5),
)

_EXIT_VERB = r"\b(walk(s|ed|ing)?|step(s|ped|ping)?|disappear(s|ed|ing)?|vanish(es|ed|ing)?|fade(s|d)?|melt(s|ed|ing)?)"

# Dramatic exits allowed once or twice per document; the excess becomes a plain exit.
EXIT_CLICHES = (
    _rule("into_the_rain", "exit-cliche", _EXIT_VERB + r"\s+(out\s+)?into\s+the\s+(rain|storm|downpour)\b", max_count=1),
    _rule("into_the_night", "exit-cliche", _EXIT_VERB + r"\s+into\s+the\s+(night|darkness|dark)\b", max_count=1),
    _rule("into_the_crowd", "exit-cliche", _EXIT_VERB + r"\s+into\s+the\s+(crowd|shadows|fog|mist)\b", max_count=1),
    _rule("storms_out", "exit-cliche", r"\bstorm(s|ed|ing)?\s+out\b", max_count=2),
)

ALTERNATIVE_EXITS = ("walks out", "leaves", "exits", "is gone", "heads out")

# ---------------------------------------------------------------------------
# Human texture
# ---------------------------------------------------------------------------

# Sight is left out on purpose: visual description is never scarce.
SENSORY = (
    _rule("smell", "sensory", r"\b(smell|scent|odor|aroma|stench|whiff|fragrance|reek)\b"),
    _rule("sound", "sensory", r"\b(sound|noise|hum|buzz|crack|thud|whisper|roar|echo|silence|hear|heard)\b"),
    _rule("touch", "sensory", r"\b(touch|feel|rough|smooth|cold|warm|wet|dry|texture|grip|grasp)\b"),
    _rule("taste", "sensory", r"\b(taste|bitter|sweet|sour|salty|metallic|tongue)\b"),
)

MESSINESS = (
    _rule("stutter", "messiness", r"\b([A-Za-z])-\1", flags=0),
    _rule("ellipsis", "messiness", r"\.\.\.", flags=0),
    _rule("dash_interrupt", "messiness", r"--(?!\s*$)", flags=0),
    _rule("filler", "messiness", r"\b(um|uh|er|ah)\b", r"\b(like|you know|I mean),"),
    _rule("false_start", "messiness", r"--\s*No[.,]"),
    _rule("trail_off", "messiness", r"[a-z]\.\.\.\s*$", flags=re.MULTILINE),
)

# ---------------------------------------------------------------------------
# Structure and continuity
# ---------------------------------------------------------------------------

RESETS = (
    _rule(
        "reset_phrasing", "reset",
        r"meanwhile,?\s+(back\s+)?(at|in)",
        r"back at the (start|beginning|office|house|station)",
        r"let's go back",
        r"as we saw earlier",
        r"returning to (the|our)",
        r"cut back to",
        r"we return to",
        severity_weight=2.0,
    ),
)

SEQUENCE_RESETS = (
    _rule("before_all_this", "reset", r"before (all|any of) this"),
    _rule("it_all_began", "reset", r"it all began"),
    _rule("story_begins", "reset", r"where (it|our story) (all )?(begins|started)"),
)

OPENING_IMAGES = (
    _rule("fade_in", "opening-image", r"FADE IN:"),
    _rule("morning_heading", "opening-image", r"^INT\..+MORNING", flags=re.IGNORECASE | re.MULTILINE),
    _rule("establishes_world", "opening-image", r"establishes? the world"),
    _rule("first_meeting", "opening-image", r"we (first )?meet"),
    _rule("introduction", "opening-image", r"introduces? (us to|the protagonist)"),
    _rule("first_time", "opening-image", r"for the first time"),
)

# ---------------------------------------------------------------------------
# Humanity-gap analysis
# ---------------------------------------------------------------------------

OVERUSED_STARTERS = (
    _rule(
        "overused_starters", "dialogue-uniformity",
        r"^(I think|I believe|I mean|I just|I need|I want|I know|I don't|I can't|I won't)",
        r"^(You know|You think|You should|You need|You have to)",
        r"^(We need|We have|We should|We can't)",
        r"^(There's|There is|There are|There was|There were)",
        r"^(It's|It is|It was|It would|It seems)",
        r"^(That's|That is|That was)",
        r"^(Look,|Listen,|Hey,|So,|Well,|Okay,|Right,)",
    ),
)

TOO_POLISHED = (
    _rule(
        "too_polished", "dialogue-uniformity",
        r"\bwhom\b", r"\bwhomever\b", r"\bshall\b", r"\bmight I\b",
        r"\bperhaps we could\b", r"\bI would be remiss\b", r"\bwith regard to\b",
        r"\bin light of\b",
        scope="dialogue",
    ),
)

NO_SUBTEXT = (
    _rule(
        "no_subtext", "subtext-absence",
        r"I('m| am) (so )?(angry|hurt|disappointed|upset) (with|at|about) you",
        r"you (always|never) (understand|listen|care)",
        r"what I('m| am) (really )?trying to say is",
        r"the (truth|thing) is,? I",
        r"I (just )?want(ed)? to (tell|say|ask) you",
        r"I need you to (know|understand|hear)",
    ),
)

THEMATIC_HAMMER = (
    _rule(
        "thematic_statements", "thematic-hammer",
        r"\bthis is (really )?about\b",
        r"\bwhat (this|it) (really )?means\b",
        r"\bthe (real )?(lesson|message|point) (here )?is\b",
        r"\bdon't you (see|understand|get it)\b",
        r"\bthat's (exactly )?what I('m| am) (trying|saying)\b",
    ),
    _rule(
        "symmetry_markers", "thematic-hammer",
        r"\bjust like (before|earlier|you said)\b",
        r"\bjust as (you|I|we) (said|predicted|thought)\b",
        r"\bfull circle\b",
        r"\bcome(s)? back to\b",
    ),
)

STAKES = (
    _rule(
        "artificial_urgency", "stakes",
        r"\bwe('re| are) running out of time\b",
        r"\bthere's no time\b",
        r"\bwe have to (move|go|act) (now|fast|quickly)\b",
        r"\bevery second counts\b",
        r"\bthe clock is ticking\b",
    ),
    _rule(
        "telegraphed_twists", "stakes",
        r"\bI have (something|a secret) to tell you\b",
        r"\bthere's something (you should|I need to) (know|tell you)\b",
        r"\byou('re| are) (not going|never going) to believe\b",
        r"\bpromise me you won't\b",
    ),
)

ACTION_TELLS = (
    _rule("simultaneous_clutter", "action-tell", r"\bas (he|she|they)\b", r"\bwhile (simultaneously|also|at the same time)\b"),
    _rule(
        "choreographed_movement", "action-tell",
        r"\bturn(s)? (slowly|quickly|sharply|abruptly)\b",
        r"\bstep(s)? (forward|backward|back|closer)\b",
        r"\bmove(s)? (toward|towards|away|closer)\b",
        r"\breach(es)? for\b",
    ),
    _rule(
        "camera_creep", "action-tell",
        r"\bwe see\b", r"\bthe camera\b", r"\bclose on\b", r"\bpull back\b",
        r"\bpush in\b", r"\bangle on\b", r"\bWIDE SHOT\b", r"\bCLOSE-UP\b",
    ),
    _rule(
        "telling_not_showing", "action-tell",
        r"\b(he|she|they) (is|are) clearly\b",
        r"\bobviously\b",
        r"\bit('s| is) clear that\b",
        r"\b(he|she|they) (is|are) (feeling|thinking)\b",
    ),
)

# ---------------------------------------------------------------------------
# Library
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PatternLibrary:
    """Versioned bundle of every rule group, swappable as a whole."""

    version: str = "1"
    clinical: tuple[PatternRule, ...] = CLINICAL
    on_the_nose: tuple[PatternRule, ...] = ON_THE_NOSE
    banger: tuple[PatternRule, ...] = BANGER
    purple_prose: tuple[PatternRule, ...] = PURPLE_PROSE
    technobabble: tuple[PatternRule, ...] = TECHNOBABBLE
    word_repetition: tuple[PatternRule, ...] = WORD_REPETITION
    summary_endings: tuple[PatternRule, ...] = SUMMARY_ENDINGS
    lowercase_bug: tuple[PatternRule, ...] = LOWERCASE_BUG
    double_punctuation: tuple[PatternRule, ...] = DOUBLE_PUNCTUATION
    verbal_tics: tuple[PatternRule, ...] = VERBAL_TICS
    tics: tuple[PatternRule, ...] = TICS
    props: tuple[PatternRule, ...] = PROPS
    motifs: tuple[PatternRule, ...] = MOTIFS
    exit_cliches: tuple[PatternRule, ...] = EXIT_CLICHES
    sensory: tuple[PatternRule, ...] = SENSORY
    messiness: tuple[PatternRule, ...] = MESSINESS
    resets: tuple[PatternRule, ...] = RESETS
    sequence_resets: tuple[PatternRule, ...] = SEQUENCE_RESETS
    opening_images: tuple[PatternRule, ...] = OPENING_IMAGES
    overused_starters: tuple[PatternRule, ...] = OVERUSED_STARTERS
    too_polished: tuple[PatternRule, ...] = TOO_POLISHED
    no_subtext: tuple[PatternRule, ...] = NO_SUBTEXT
    thematic_hammer: tuple[PatternRule, ...] = THEMATIC_HAMMER
    stakes: tuple[PatternRule, ...] = STAKES
    action_tells: tuple[PatternRule, ...] = ACTION_TELLS
    _index: dict[str, PatternRule] = field(default_factory=dict, init=False, repr=False, compare=False)

    # Groups whose rule names double as match keys in DocumentFeatures. Props and
    # motifs share names with tics, so they are matched by their own consumers.
    SCORED_GROUPS = (
        "clinical", "on_the_nose", "banger", "purple_prose", "technobabble",
        "word_repetition", "summary_endings", "lowercase_bug", "double_punctuation",
        "tics", "sensory", "messiness", "resets",
    )

    def __post_init__(self) -> None:
        index: dict[str, PatternRule] = {}
        for group in self.SCORED_GROUPS:
            for rule in getattr(self, group):
                if rule.name in index:
                    raise ValueError(f"Duplicate scored rule name {rule.name!r} in group {group!r}")
                index[rule.name] = rule
        object.__setattr__(self, "_index", index)

    def scored_rules(self) -> list[PatternRule]:
        return list(self._index.values())

    def rule(self, name: str) -> PatternRule:
        try:
            return self._index[name]
        except KeyError:
            raise KeyError(f"No scored rule named {name!r}") from None

    def rules_in(self, category: str) -> list[PatternRule]:
        return [r for r in self._index.values() if r.category == category]


DEFAULT_LIBRARY = PatternLibrary()
