import re
from typing import List, Set

_WORD_RE = re.compile(r"[a-z0-9']+")


def words(text: str) -> List[str]:
    """Lowercased word tokens, punctuation stripped."""
    return _WORD_RE.findall((text or "").lower())


def significant_words(text: str, min_length: int) -> Set[str]:
    """Distinct alphabetic words strictly longer than ``min_length``."""
    cleaned = (re.sub(r"[^a-z]", "", w) for w in (text or "").lower().split())
    return {w for w in cleaned if len(w) > min_length}
