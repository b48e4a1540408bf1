"""
Text heuristics for campaign title, description and story.
Each analyzer is a pure function returning a 0-100 SubScore.
"""

import re
from collections import Counter

from fundguard.models.analysis import SignalCollector, SubScore
from fundguard.utils.preprocessing import words

# ============== TITLE ==============

CRITICAL_TITLE_PHRASES = (
    "guaranteed money",
    "guaranteed return",
    "wire transfer",
    "act fast",
    "easy money",
    "get rich",
    "investment opportunity",
    "no questions asked",
    "double your money",
    "send money now",
)

HIGH_RISK_TITLE_PHRASES = (
    "urgent",
    "emergency",
    "bankruptcy",
    "dying",
    "last chance",
    "desperate",
    "immediate",
    "help me please",
    "life or death",
    "scam",
)

EMOTIONAL_TITLE_PHRASES = (
    "please help",
    "save me",
    "save my",
    "dying",
    "cancer",
    "accident",
    "tragedy",
    "victim",
    "homeless",
    "starving",
    "heartbroken",
    "orphan",
)

TITLE_SCAM_PATTERNS = (
    re.compile(r"need\s+\$?\d[\d,]*\s*(?:urgent(?:ly)?|now|asap|today)", re.IGNORECASE),
    re.compile(r"only\s+\$?\d[\d,]*\s*(?:left|more|to go|needed)", re.IGNORECASE),
    re.compile(r"\b\d+\s*(?:hours?|days?)\s+left\b", re.IGNORECASE),
    re.compile(r"\b(?:double|triple)\s+your\s+(?:money|donation)", re.IGNORECASE),
)

CRITICAL_PHRASE_POINTS = 40
HIGH_RISK_PHRASE_POINTS = 25
EMOTIONAL_HEAVY_POINTS = 20  # more than EMOTIONAL_HEAVY_COUNT matches
EMOTIONAL_LIGHT_POINTS = 8
EMOTIONAL_HEAVY_COUNT = 2

CAPS_SHOUTING_RATIO = 0.5
CAPS_SHOUTING_MIN_LENGTH = 10
CAPS_HEAVY_RATIO = 0.3
CAPS_LIGHT_RATIO = 0.2
CAPS_POINTS = (20, 12, 6)

TRIPLE_PUNCT_RE = re.compile(r"[!?]{3,}")
DOUBLE_PUNCT_RE = re.compile(r"(?<![!?])[!?]{2}(?![!?])")
TRIPLE_PUNCT_POINTS = 15
DOUBLE_PUNCT_MANY_POINTS = 10
DOUBLE_PUNCT_ONE_POINTS = 5

TITLE_MIN_LENGTH = 10
TITLE_MAX_LENGTH = 200
SHORT_TITLE_POINTS = 15
LONG_TITLE_POINTS = 12
TITLE_PATTERN_POINTS = 18


def analyze_title(title: str) -> SubScore:
    """Score a campaign title. ``title`` must not be None."""
    signals = SignalCollector("title", "Title")
    lower = title.lower()
    length = len(title)

    for phrase in CRITICAL_TITLE_PHRASES:
        if phrase in lower:
            signals.add(CRITICAL_PHRASE_POINTS, f"Title contains fraud keyword '{phrase}'")

    for phrase in HIGH_RISK_TITLE_PHRASES:
        if phrase in lower:
            signals.add(HIGH_RISK_PHRASE_POINTS, f"Title contains high-risk term '{phrase}'")

    emotional = sum(1 for phrase in EMOTIONAL_TITLE_PHRASES if phrase in lower)
    if emotional > EMOTIONAL_HEAVY_COUNT:
        signals.add(EMOTIONAL_HEAVY_POINTS, f"Title leans on emotional appeal ({emotional} phrases)")
    elif emotional > 0:
        signals.add(EMOTIONAL_LIGHT_POINTS, "Title uses emotional appeal")

    if length:
        caps_ratio = sum(1 for ch in title if ch.isupper()) / length
        if caps_ratio > CAPS_SHOUTING_RATIO and length > CAPS_SHOUTING_MIN_LENGTH:
            signals.add(CAPS_POINTS[0], "Title is mostly capital letters")
        elif caps_ratio > CAPS_HEAVY_RATIO:
            signals.add(CAPS_POINTS[1], "Title uses excessive capitalization")
        elif caps_ratio > CAPS_LIGHT_RATIO:
            signals.add(CAPS_POINTS[2], "Title uses heavy capitalization")

    if TRIPLE_PUNCT_RE.search(title):
        signals.add(TRIPLE_PUNCT_POINTS, "Title has runs of repeated punctuation")
    doubles = len(DOUBLE_PUNCT_RE.findall(title))
    if doubles > 1:
        signals.add(DOUBLE_PUNCT_MANY_POINTS, "Title repeats doubled punctuation")
    elif doubles == 1:
        signals.add(DOUBLE_PUNCT_ONE_POINTS, "Title has doubled punctuation")

    if length < TITLE_MIN_LENGTH:
        signals.add(SHORT_TITLE_POINTS, "Title is too short to be specific")
    elif length > TITLE_MAX_LENGTH:
        signals.add(LONG_TITLE_POINTS, "Title is unusually long")

    for pattern in TITLE_SCAM_PATTERNS:
        for _ in pattern.finditer(title):
            signals.add(TITLE_PATTERN_POINTS, "Title matches a known scam phrasing")

    return signals.result()


# ============== DESCRIPTION ==============

SOLICITATION_PHRASES = (
    "send money",
    "wire transfer",
    "paypal only",
    "cash only",
    "western union",
    "moneygram",
    "gift card",
    "guaranteed return",
    "trust me",
    "secret method",
    "transfer directly",
    "bank details",
)

PAYMENT_HANDLE_PATTERNS = (
    ("cash tag", re.compile(r"(?<![\w$])\$[A-Za-z][A-Za-z0-9_-]{2,}")),
    ("payment link", re.compile(r"\b(?:paypal\.me|venmo\.com|cash\.app)/\S+", re.IGNORECASE)),
    ("email address", re.compile(r"\b[\w.+-]+@[\w-]+\.[A-Za-z]{2,}\b")),
    ("account number", re.compile(r"\b\d{9,18}\b")),
    ("IBAN", re.compile(r"\b[A-Z]{2}\d{2}[A-Z0-9]{11,30}\b")),
    ("crypto wallet", re.compile(r"\b(?:bc1[a-z0-9]{25,39}|[13][a-km-zA-HJ-NP-Z1-9]{25,34}|0x[a-fA-F0-9]{40})\b")),
)

SHARE_TEMPLATE_PHRASES = (
    "share this post",
    "please share",
    "forward this message",
    "copy and paste",
    "spread the word",
    "tag your friends",
    "every share counts",
    "make this go viral",
)

SOLICITATION_POINTS = 25
PAYMENT_HANDLE_POINTS = 30
SHARE_TEMPLATE_POINTS = 20

DESCRIPTION_VAGUE_LENGTH = 50
DESCRIPTION_THIN_LENGTH = 100
DESCRIPTION_VAGUE_POINTS = 20
DESCRIPTION_THIN_POINTS = 10

REPETITION_HEAVY = 8
REPETITION_LIGHT = 5
REPETITION_HEAVY_POINTS = 20
REPETITION_LIGHT_POINTS = 10
REPETITION_MIN_WORD_LENGTH = 3  # only words longer than this count

DIVERSITY_MIN_WORDS = 50
DIVERSITY_RATIO = 0.3
DIVERSITY_POINTS = 15


def _max_repetition(text: str) -> int:
    counts = Counter()
    for token in text.split():
        cleaned = re.sub(r"[^a-z]", "", token.lower())
        if len(cleaned) > REPETITION_MIN_WORD_LENGTH:
            counts[cleaned] += 1
    return max(counts.values()) if counts else 0


def analyze_description(description: str) -> SubScore:
    signals = SignalCollector("description", "Description")
    lower = description.lower()

    for phrase in SOLICITATION_PHRASES:
        if phrase in lower:
            signals.add(SOLICITATION_POINTS, f"Description solicits money directly ('{phrase}')")

    for name, pattern in PAYMENT_HANDLE_PATTERNS:
        if pattern.search(description):
            signals.add(PAYMENT_HANDLE_POINTS, f"Description embeds a payment detail ({name})")

    length = len(description.strip())
    if length < DESCRIPTION_VAGUE_LENGTH:
        signals.add(DESCRIPTION_VAGUE_POINTS, "Description is too vague")
    elif length < DESCRIPTION_THIN_LENGTH:
        signals.add(DESCRIPTION_THIN_POINTS, "Description is thin on detail")

    repetition = _max_repetition(description)
    if repetition > REPETITION_HEAVY:
        signals.add(REPETITION_HEAVY_POINTS, f"Description repeats one word {repetition} times")
    elif repetition > REPETITION_LIGHT:
        signals.add(REPETITION_LIGHT_POINTS, f"Description repeats one word {repetition} times")

    tokens = words(description)
    if len(tokens) >= DIVERSITY_MIN_WORDS:
        diversity = len(set(tokens)) / len(tokens)
        if diversity < DIVERSITY_RATIO:
            signals.add(DIVERSITY_POINTS, "Description has very low vocabulary diversity")

    for phrase in SHARE_TEMPLATE_PHRASES:
        if phrase in lower:
            signals.add(SHARE_TEMPLATE_POINTS, f"Description uses share-bait template ('{phrase}')")

    return signals.result()


# ============== STORY ==============

COPIED_STORY_PHRASES = (
    "copy and paste",
    "share this post",
    "forward this message",
    "please share",
    "viral post",
    "true story",
    "lorem ipsum",
    "insert name here",
    "[your name]",
)

RELATIVE_TIME_RE = re.compile(
    r"\b(?:yesterday|last (?:week|month|year)|(?:days|weeks|months|years) ago|recently)\b",
    re.IGNORECASE,
)

MANIPULATION_PATTERNS = (
    re.compile(r"\btime (?:is )?running out\b", re.IGNORECASE),
    re.compile(r"\bdesperate(?:ly)? need", re.IGNORECASE),
    re.compile(r"\bonly you can (?:help|save)\b", re.IGNORECASE),
    re.compile(r"\b(?:last|final|only) hope\b", re.IGNORECASE),
    re.compile(r"\bbefore it'?s too late\b", re.IGNORECASE),
    re.compile(r"\b(?:every|each) (?:second|minute|hour) counts\b", re.IGNORECASE),
    re.compile(r"\bno one else (?:will|can) help\b", re.IGNORECASE),
)

SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")

STORY_SHORT_LENGTH = 200
STORY_BLOATED_LENGTH = 5000
STORY_SHORT_POINTS = 20
STORY_BLOATED_POINTS = 15

SHORT_SENTENCE_CHARS = 15
SHORT_SENTENCE_SHARE = 0.8
LONG_SENTENCE_CHARS = 300
LONG_SENTENCE_SHARE = 0.3
SENTENCE_SHAPE_POINTS = 15

STYLE_WORD_LENGTH_DELTA = 3
STYLE_SHIFT_POINTS = 10

COPIED_PHRASE_POINTS = 30
RELATIVE_TIME_LIMIT = 5
RELATIVE_TIME_POINTS = 10
MANIPULATION_POINTS = 15

UNBROKEN_TEXT_LENGTH = 1000
UNBROKEN_TEXT_POINTS = 10

NO_SENTENCES_SCORE = 50.0


def _average_word_length(tokens) -> float:
    return sum(len(t) for t in tokens) / len(tokens) if tokens else 0.0


def analyze_story(story: str) -> SubScore:
    signals = SignalCollector("story", "Story")
    sentences = [s.strip() for s in SENTENCE_SPLIT_RE.split(story) if s.strip()]

    if not sentences:
        signals.add(NO_SENTENCES_SCORE, "Story has no readable sentences")
        return signals.result()

    length = len(story)
    if length < STORY_SHORT_LENGTH:
        signals.add(STORY_SHORT_POINTS, "Story is too short to be credible")
    elif length > STORY_BLOATED_LENGTH:
        signals.add(STORY_BLOATED_POINTS, "Story is unusually long, possibly pasted in")

    total = len(sentences)
    short = sum(1 for s in sentences if len(s) < SHORT_SENTENCE_CHARS)
    long = sum(1 for s in sentences if len(s) > LONG_SENTENCE_CHARS)
    if short / total > SHORT_SENTENCE_SHARE:
        signals.add(SENTENCE_SHAPE_POINTS, "Story is mostly fragments")
    if long / total > LONG_SENTENCE_SHARE:
        signals.add(SENTENCE_SHAPE_POINTS, "Story is dominated by run-on sentences")

    tokens = story.split()
    half = len(tokens) // 2
    if half:
        delta = abs(_average_word_length(tokens[:half]) - _average_word_length(tokens[half:]))
        if delta > STYLE_WORD_LENGTH_DELTA:
            signals.add(STYLE_SHIFT_POINTS, "Writing style shifts between halves of the story")

    lower = story.lower()
    for phrase in COPIED_STORY_PHRASES:
        if phrase in lower:
            signals.add(COPIED_PHRASE_POINTS, f"Story contains template text ('{phrase}')")

    time_refs = len(RELATIVE_TIME_RE.findall(story))
    if time_refs > RELATIVE_TIME_LIMIT:
        signals.add(RELATIVE_TIME_POINTS, f"Story leans on vague time references ({time_refs})")

    for pattern in MANIPULATION_PATTERNS:
        if pattern.search(story):
            signals.add(MANIPULATION_POINTS, "Story uses pressure language")

    if length > UNBROKEN_TEXT_LENGTH and "\n" not in story.strip():
        signals.add(UNBROKEN_TEXT_POINTS, "Long story has no paragraph breaks")

    return signals.result()
