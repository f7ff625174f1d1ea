"""
Marker Lexicon

Category-tagged marker vocabularies used by the feature extractor and the
dimension scorers. Matching is lowercase and word-bounded; multi-word
entries match as phrases.
"""

import re
from functools import lru_cache
from typing import Dict, FrozenSet, List, Pattern, Tuple

# =============================================================================
# PROGRESSION MARKERS
# =============================================================================

PLOT_MOVERS = frozenset([
    "suddenly", "decided", "discovered", "revealed", "realized", "finally",
    "began", "changed", "arrived", "escaped", "chose", "found", "learned",
    "turned", "broke", "vowed", "uncovered", "set out", "at last",
])

CONFLICT_ESCALATION = frozenset([
    "fight", "fought", "battle", "threat", "threatened", "danger", "enemy",
    "clash", "argued", "argument", "war", "attack", "attacked", "confront",
    "confronted", "betrayed", "betrayal", "rival", "furious", "demanded",
    "refused", "struck", "chase", "crisis", "trap", "ambush", "desperate",
])

RESOLUTION = frozenset([
    "resolved", "reconciled", "forgave", "apologized", "peace", "settled",
    "truce", "made up", "calmed",
])

RELATIONSHIP_PROGRESSION = frozenset([
    "together", "trust", "trusted", "closer", "embrace", "embraced", "kiss",
    "kissed", "held hands", "confessed", "partner", "allies",
])

STAGNATION = frozenset([
    "nothing happened", "as usual", "same as always", "same as before",
    "nothing changed", "another ordinary", "routine", "as always",
    "uneventful", "once again", "just like yesterday", "nothing new",
    "ordinary day", "boring", "still nothing", "idle", "nothing to do",
    "the same", "waited",
])

NEW_ELEMENTS = frozenset([
    "new", "first time", "stranger", "unknown", "mysterious", "appeared",
    "introduced", "never seen", "unfamiliar", "newcomer", "hidden",
])

# =============================================================================
# AGENCY MARKERS
# =============================================================================

ACTIVE_VERBS = frozenset([
    "will", "must", "decide", "decided", "declare", "declared", "demand",
    "demanded", "insist", "insisted", "refuse", "refused", "choose", "chose",
    "promise", "promised", "vow", "vowed", "order", "ordered", "command",
    "commanded", "grabbed", "seized", "stepped", "charged", "pushed",
    "strode", "lead", "led", "fight", "stop", "i'll", "we'll", "let's",
])

PASSIVE_MARKERS = frozenset([
    "maybe", "perhaps", "i guess", "i suppose", "i don't know",
    "if you want", "was told", "was made", "was forced", "was taken",
    "had no choice", "couldn't help", "nothing i can do", "i'm not sure",
    "waited for", "hoped someone", "sort of", "kind of", "let it happen",
    "whatever you say",
])

PASSIVE_VOICE = re.compile(r"\b(?:was|were|been|being)\s+\w+ed\s+by\b", re.IGNORECASE)

# Passive phrasing and its active rewrite
PASSIVE_TO_ACTIVE: List[Tuple[str, str]] = [
    (r"\bmaybe we should\b", "we will"),
    (r"\bperhaps i could\b", "I will"),
    (r"\bperhaps we could\b", "we will"),
    (r"\bi guess i'll\b", "I'll"),
    (r"\bi guess\b", "I think"),
    (r"\bi suppose\b", "I believe"),
    (r"\bi don't know what to do\b", "I know what to do"),
    (r"\bi'm not sure\b", "I'm certain"),
    (r"\bif you want\b", "I want"),
    (r"\bi had no choice\b", "I chose"),
    (r"\blet it happen\b", "made it happen"),
    (r"\bwaited for\b", "went after"),
    (r"\bwhatever you say\b", "here is what I say"),
    (r"\bhoped someone would\b", "decided to"),
]

# =============================================================================
# STYLE MARKERS
# =============================================================================

ELEVATED_VOCABULARY = frozenset([
    "luminous", "ephemeral", "resplendent", "melancholy", "labyrinthine",
    "inexorable", "serene", "ethereal", "crimson", "obsidian", "cascade",
    "reverie", "solemn", "tremulous", "incandescent", "vestige", "gossamer",
    "sonorous", "languid", "fervent", "austere", "sublime", "ominous",
    "desolate", "radiant", "tempestuous", "wistful", "somber", "verdant",
    "alabaster", "iridescent", "murmured", "lingered", "shimmering",
    "resolute", "relentless", "poignant", "tenacious", "silvery", "hushed",
])

BASIC_VOCABULARY = frozenset([
    "good", "bad", "nice", "big", "small", "very", "really", "thing",
    "things", "stuff", "got", "okay", "lot", "pretty", "kinda",
])

SENSORY = frozenset([
    "glimpse", "gleam", "glow", "glowed", "bright", "shadow", "shadows",
    "color", "colour", "heard", "sound", "echo", "echoed", "whisper",
    "roar", "silence", "smell", "scent", "fragrance", "aroma", "stench",
    "taste", "bitter", "sweet", "salty", "cold", "warm", "rough", "smooth",
    "soft", "trembled", "shivered", "damp", "sharp",
])

FIGURATIVE = frozenset([
    "like a", "like an", "like the", "as if", "as though", "resembled",
    "akin to", "reminiscent of", "seemed to",
])

# =============================================================================
# EMOTION AND RELATIONSHIP MARKERS
# =============================================================================

EMOTION = frozenset([
    "love", "loved", "hate", "hated", "fear", "afraid", "joy", "happy",
    "sad", "sorrow", "grief", "anger", "angry", "rage", "jealous",
    "longing", "lonely", "hope", "despair", "tears", "cried", "laughed",
    "smiled", "ache", "heartbreak", "anxious", "relief", "shame", "guilt",
])

ROMANCE = frozenset([
    "heart", "kiss", "kissed", "embrace", "blush", "blushed", "gaze",
    "beloved", "darling", "tender", "caress", "lips", "cheeks", "love",
    "loved", "longing",
])

FLUTTER = frozenset([
    "heart raced", "heart pounded", "heart skipped", "heart fluttered",
    "breath caught", "cheeks flushed", "blushed", "couldn't look away",
    "pulse quickened", "butterflies", "skipped a beat", "face burned",
    "held her breath", "held his breath",
])

UNRESOLVED_CHARGE = frozenset([
    "almost", "nearly", "hesitated", "unspoken", "tension", "wanted to say",
    "couldn't say", "pulled away", "looked away", "too close",
    "silence between",
])

TENSION_MARKERS = frozenset([
    "but", "however", "suddenly", "yet", "although", "until",
])

GENRE = frozenset([
    "magic", "spell", "sword", "mage", "dragon", "kingdom", "prince",
    "princess", "duke", "duchess", "knight", "empire", "emperor", "throne",
    "castle", "curse", "mana", "sorcerer", "witch", "enchanted", "rune",
    "royal", "noble",
])

HONORIFICS = frozenset([
    "your highness", "your majesty", "your grace", "my lord", "my lady",
    "sir", "lady", "lord", "master", "madam",
])

# Ordered from first meeting to completed union
RELATIONSHIP_STAGES: List[Tuple[str, FrozenSet[str]]] = [
    ("strangers", frozenset(["stranger", "first met", "first time", "introduced", "never met"])),
    ("hostility", frozenset(["glared", "despised", "rival", "insulted", "scoffed", "resented"])),
    ("interest", frozenset(["curious", "noticed", "intrigued", "wondered about", "caught sight"])),
    ("attraction", frozenset(["handsome", "beautiful", "attractive", "charming", "drawn to"])),
    ("closeness", frozenset(["laughed together", "confided", "opened up", "trusted", "friend"])),
    ("flutter", frozenset(["heart raced", "blushed", "butterflies", "breath caught", "flushed"])),
    ("longing", frozenset(["missed", "longed", "yearned", "couldn't stop thinking", "ached for"])),
    ("confession", frozenset(["i love you", "confessed", "my feelings", "i like you"])),
    ("commitment", frozenset(["forever", "marry me", "proposal", "proposed", "promised to stay"])),
    ("union", frozenset(["wedding", "married", "husband", "wife", "ever after"])),
]

STAGE_NAMES: List[str] = [name for name, _ in RELATIONSHIP_STAGES]

STOPWORDS = frozenset([
    "the", "and", "that", "with", "from", "this", "were", "have", "their",
    "there", "they", "them", "then", "than", "when", "what", "which",
    "would", "could", "should", "into", "about", "been", "your", "just",
    "only", "over", "some", "said",
])

MARKER_CATEGORIES: Dict[str, FrozenSet[str]] = {
    "plot_movers": PLOT_MOVERS,
    "conflict": CONFLICT_ESCALATION,
    "resolution": RESOLUTION,
    "relationship": RELATIONSHIP_PROGRESSION,
    "stagnation": STAGNATION,
    "new_elements": NEW_ELEMENTS,
    "active_verbs": ACTIVE_VERBS,
    "passive": PASSIVE_MARKERS,
    "elevated": ELEVATED_VOCABULARY,
    "basic": BASIC_VOCABULARY,
    "sensory": SENSORY,
    "figurative": FIGURATIVE,
    "emotion": EMOTION,
    "romance": ROMANCE,
    "flutter": FLUTTER,
    "unresolved": UNRESOLVED_CHARGE,
    "tension": TENSION_MARKERS,
    "genre": GENRE,
    "honorifics": HONORIFICS,
}


@lru_cache(maxsize=None)
def marker_pattern(markers: FrozenSet[str]) -> Pattern:
    """Compile a single alternation regex for a marker set, longest phrases first."""
    alternatives = sorted(markers, key=len, reverse=True)
    body = "|".join(re.escape(m) for m in alternatives)
    return re.compile(rf"(?<![\w'])(?:{body})(?![\w'])", re.IGNORECASE)


def count_markers(text: str, markers: FrozenSet[str]) -> int:
    """Count non-overlapping marker occurrences in text."""
    if not text:
        return 0
    return len(marker_pattern(markers).findall(text))


def find_markers(text: str, markers: FrozenSet[str]) -> List[str]:
    """Return the lowercase markers found in text, in order of appearance."""
    if not text:
        return []
    return [m.lower() for m in marker_pattern(markers).findall(text)]
