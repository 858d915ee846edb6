"""American Soundex encoding for fuzzy name comparison.

    >>> soundex("Robert"), soundex("Rupert")
    ('R163', 'R163')
    >>> soundex("Ashcraft")
    'A261'
"""

_CODES = {}
for _letters, _digit in (
    ('bfpv', '1'),
    ('cgjkqsxz', '2'),
    ('dt', '3'),
    ('l', '4'),
    ('mn', '5'),
    ('r', '6'),
):
    for _letter in _letters:
        _CODES[_letter] = _digit

# h and w do not separate letters with the same code
_TRANSPARENT = frozenset('hw')

CODE_LENGTH = 4


def soundex(name: str) -> str:
    """
    Encode a name as a four character Soundex code.

    Non-letters are ignored; input without letters encodes to "".
    """
    letters = [c for c in (name or "").lower() if 'a' <= c <= 'z']
    if not letters:
        return ""

    first = letters[0]
    digits = []
    previous = _CODES.get(first, '')

    for letter in letters[1:]:
        if letter in _TRANSPARENT:
            continue

        code = _CODES.get(letter, '')
        if code and code != previous:
            digits.append(code)
            if len(digits) == CODE_LENGTH - 1:
                break
        # vowels and y reset the run
        previous = code

    return (first.upper() + ''.join(digits)).ljust(CODE_LENGTH, '0')
