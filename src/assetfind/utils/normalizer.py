# normalizer.py
"""
Query / catalog text normalization.

The same functions are used for user queries and for the catalog words that
feed the spelling dictionary, so both sides land on identical token forms.

Steps:
 - unicode (NFKC) normalization + lowercase
 - punctuation, underscores and digits become whitespace
 - whitespace tokenization
 - fixed stopword removal
 - English pluralization heuristics (irregular table, then suffix rules)
"""

from typing import List, Optional
import re
import unicodedata

# ---------- Config / dictionaries ----------
STOPWORDS = frozenset({
    "a", "an", "and", "are", "as", "at", "be", "by", "for", "from", "in",
    "into", "is", "it", "its", "of", "on", "or", "the", "this", "that",
    "to", "with",
})

# Checked before the suffix rules. Values must be stable under singularize().
IRREGULAR_PLURALS = {
    "men": "man",
    "women": "woman",
    "children": "child",
    "people": "person",
    "mice": "mouse",
    "geese": "goose",
    "feet": "foot",
    "teeth": "tooth",
    "oxen": "ox",
    "leaves": "leaf",
    "knives": "knife",
    "wives": "wife",
    "lives": "life",
    "movies": "movie",
    "cookies": "cookie",
    "ties": "tie",
    "pies": "pie",
    "series": "series",
    "species": "species",
    "news": "news",
}

# Tokens this short are never suffix-stripped ("bus", "gas", "yes")
MIN_STRIPPABLE_LENGTH = 4

# Anything that is not a letter or whitespace; \w also covers digits and "_"
_NON_LETTER_RE = re.compile(r"[^\w\s]|[\d_]")
_WS_RE = re.compile(r"\s+")


# ---------- Helper utilities ----------
def _unicode_normalize(s: str) -> str:
    return unicodedata.normalize("NFKC", s)


def _strip_suffix(token: str) -> str:
    """One pass of the suffix rules."""
    if len(token) < MIN_STRIPPABLE_LENGTH:
        return token
    if token.endswith("ies"):
        return token[:-3] + "y"
    if token.endswith("ves"):
        return token[:-3] + "f"
    if token.endswith(("xes", "ses", "zes")):
        return token[:-2]
    if token.endswith(("shes", "ches")):
        return token[:-2]
    if token.endswith("s") and not token.endswith("ss"):
        return token[:-1]
    return token


def singularize(token: str) -> str:
    """
    Reduce a lowercase token to its singular form.

    Rules are applied until the token stops changing, so
    singularize(singularize(t)) == singularize(t) holds for every token.
    """
    while True:
        if token in IRREGULAR_PLURALS:
            return IRREGULAR_PLURALS[token]
        stripped = _strip_suffix(token)
        if stripped == token:
            return token
        token = stripped


_PLURAL_OF = {v: k for k, v in IRREGULAR_PLURALS.items() if k != v}


def surface_forms(token: str) -> List[str]:
    """
    Spellings a singular token can take in raw catalog text.

    Only forms a substring match on the token itself would miss are added:
    "car" already matches "cars", but "city" does not match "cities".
    """
    forms = [token]
    if token in _PLURAL_OF:
        forms.append(_PLURAL_OF[token])
    if len(token) >= 3 and token.endswith("y"):
        forms.append(token[:-1] + "ies")
    elif len(token) >= 3 and token.endswith("f"):
        forms.append(token[:-1] + "ves")
    return list(dict.fromkeys(forms))


def tokenize(text: Optional[str]) -> List[str]:
    """Lowercased alphabetic words of `text`, no stopword removal."""
    if not text:
        return []
    s = _unicode_normalize(str(text)).lower()
    s = _NON_LETTER_RE.sub(" ", s)
    s = _WS_RE.sub(" ", s).strip()
    return s.split() if s else []


# ---------- Main public functions ----------
def normalize_words(text: Optional[str]) -> List[str]:
    """Tokenize, drop stopwords and singularize. Order is preserved."""
    words = (singularize(t) for t in tokenize(text) if t not in STOPWORDS)
    # singularizing can land on a stopword ("thises" -> "this")
    return [w for w in words if w not in STOPWORDS]


def normalize_query(query: Optional[str]) -> List[str]:
    """
    Normalize a raw search query into tokens.

    Empty or whitespace-only input yields []; callers must not hit the store
    in that case.
    """
    return normalize_words(query)


# ---------- quick test / debug (only runs when executed directly) ----------
if __name__ == "__main__":
    samples = [
        "Red Sports Cars",
        "  cities_of  the WORLD 2024!! ",
        "boxes, dresses & wolves",
        "glasses for men",
        "",
    ]
    for s in samples:
        print("ORIG:", repr(s))
        print("TOKENS:", normalize_query(s))
        print("------")
