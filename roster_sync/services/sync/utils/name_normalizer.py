"""Name normalization utilities for player identity matching.

Handles common variations across providers:
- Punctuation: "C.J. Stroud" → "cj stroud"
- Hyphens: "Amon-Ra St. Brown" → "amon ra st brown"
- Accents: "Tomás Jiménez" → "tomas jimenez"
- Case: "PATRICK MAHOMES" → "patrick mahomes"
- Extra spaces: "Josh  Allen" → "josh allen"

Also provides the nickname equivalence table used for first-name
variation matching ("Mike" ↔ "Michael", "Bob" ↔ "Robert").
"""
import re
import unicodedata
from typing import Dict, FrozenSet, List, Tuple


# Formal first name -> accepted nicknames
NICKNAMES: Dict[str, Tuple[str, ...]] = {
    'anthony': ('tony',),
    'christopher': ('chris', 'kit'),
    'daniel': ('dan', 'danny'),
    'david': ('dave', 'davey'),
    'edward': ('ed', 'eddie', 'ted'),
    'eugene': ('gene',),
    'frederick': ('fred', 'freddy'),
    'gregory': ('greg',),
    'james': ('jim', 'jimmy', 'jamie'),
    'jeffrey': ('jeff',),
    'joseph': ('joe', 'joey'),
    'joshua': ('josh',),
    'kenneth': ('ken', 'kenny'),
    'matthew': ('matt',),
    'michael': ('mike', 'mickey'),
    'nicholas': ('nick', 'nicky'),
    'patrick': ('pat', 'paddy'),
    'richard': ('rick', 'ricky', 'dick'),
    'robert': ('rob', 'bob', 'bobby'),
    'stephen': ('steve', 'stevie'),
    'theodore': ('ted', 'teddy'),
    'thomas': ('tom', 'tommy'),
    'william': ('will', 'bill', 'billy'),
    'zachary': ('zach',),
}


def _build_nickname_groups() -> Dict[str, List[FrozenSet[str]]]:
    """Index every name to the equivalence groups it belongs to."""
    groups: Dict[str, List[FrozenSet[str]]] = {}
    for formal, nicknames in NICKNAMES.items():
        group = frozenset((formal,) + nicknames)
        for name in group:
            groups.setdefault(name, []).append(group)
    return groups


# "ted" belongs to both edward and theodore, so a name maps to a list
_NICKNAME_GROUPS = _build_nickname_groups()


def normalize(name: str) -> str:
    """
    Normalize a name for comparison.

    Steps:
    1. Normalize unicode (remove accents)
    2. Convert to lowercase
    3. Turn hyphens into spaces, drop other punctuation
    4. Collapse whitespace

    Args:
        name: The name to normalize

    Returns:
        Normalized name string ("" for None or empty input)

    Examples:
        >>> normalize("C.J. Stroud")
        'cj stroud'
        >>> normalize("Amon-Ra St. Brown")
        'amon ra st brown'
        >>> normalize("  Josh   Allen ")
        'josh allen'
    """
    if not name:
        return ""

    name = _normalize_unicode(name)
    name = name.lower()
    name = name.replace('-', ' ')
    name = re.sub(r'[^\w\s]', '', name)
    name = name.replace('_', '')

    return ' '.join(name.split())


def _normalize_unicode(name: str) -> str:
    """
    Remove accents and diacritics from unicode characters.

    Args:
        name: The name to normalize

    Returns:
        Name with accents removed
    """
    normalized = unicodedata.normalize('NFD', name)
    return ''.join(
        c for c in normalized
        if unicodedata.category(c) != 'Mn'
    )


def name_tokens(name: str) -> FrozenSet[str]:
    """Set of normalized tokens in a name."""
    return frozenset(normalize(name).split())


def is_nickname_variant(name1: str, name2: str) -> bool:
    """
    Check whether two first names are nickname variants of each other.

    The lookup is bidirectional ("mike" ↔ "michael") and two nicknames of
    the same formal name also count ("bob" ↔ "bobby"). Identical names
    are not variants.

    Args:
        name1: First name
        name2: Second name

    Returns:
        True if the names share a nickname group
    """
    a = normalize(name1)
    b = normalize(name2)

    if not a or not b or a == b:
        return False

    for group in _NICKNAME_GROUPS.get(a, ()):
        if b in group:
            return True

    return False


def extract_player_name_parts(name: str) -> Tuple[str, str]:
    """
    Split a player name into first and last name.

    - "Josh Allen" → ("Josh", "Allen")
    - "Amon-Ra St. Brown" → ("Amon-Ra", "St. Brown")
    - "Tua" → ("Tua", "")

    Args:
        name: Full player name

    Returns:
        Tuple of (first_name, last_name)
    """
    parts = (name or "").split()

    if not parts:
        return ("", "")

    if len(parts) == 1:
        return (parts[0], "")

    return (parts[0], ' '.join(parts[1:]))
