"""Text normalization for speech synthesis.

Rewrites numerals, ordinals and symbols into words a synthesis voice can
read. Numeral expansion only applies to English-family languages; a small
symbol pass (arrows, underscores, whitespace) applies to every language.
"""

import re
from collections.abc import Callable

NUMBER_WORDS = {
    0: "zero", 1: "one", 2: "two", 3: "three", 4: "four", 5: "five",
    6: "six", 7: "seven", 8: "eight", 9: "nine", 10: "ten",
    11: "eleven", 12: "twelve", 13: "thirteen", 14: "fourteen", 15: "fifteen",
    16: "sixteen", 17: "seventeen", 18: "eighteen", 19: "nineteen",
    20: "twenty", 30: "thirty", 40: "forty", 50: "fifty",
    60: "sixty", 70: "seventy", 80: "eighty", 90: "ninety",
}  # fmt: skip

ORDINAL_WORDS = {
    1: "first", 2: "second", 3: "third", 4: "fourth", 5: "fifth",
    6: "sixth", 7: "seventh", 8: "eighth", 9: "ninth", 10: "tenth",
    11: "eleventh", 12: "twelfth", 13: "thirteenth", 14: "fourteenth",
    15: "fifteenth", 16: "sixteenth", 17: "seventeenth", 18: "eighteenth",
    19: "nineteenth", 20: "twentieth", 30: "thirtieth", 40: "fortieth",
    50: "fiftieth", 60: "sixtieth", 70: "seventieth", 80: "eightieth",
    90: "ninetieth", 100: "hundredth",
}  # fmt: skip

MAX_SPOKEN_NUMBER = 9999

_ARROWS = re.compile(r"->|<-|=>|[←→↑↓↔⇐⇒⇑⇓➔➜➡⬅⬆⬇]")
_WHITESPACE = re.compile(r"\s+")
_PARENTHESIZED = re.compile(r"\(([^)]+)\)")
_AOE = re.compile(r"\bAoE\b")

# Matching is ASCII-only so that digits and word boundaries behave the same
# for every script mixed into the text.
_FLAGS = re.ASCII


def _under_hundred(n: int) -> str:
    if n <= 20:
        return NUMBER_WORDS[n]
    tens, ones = divmod(n, 10)
    if ones == 0:
        return NUMBER_WORDS[tens * 10]
    return f"{NUMBER_WORDS[tens * 10]} {NUMBER_WORDS[ones]}"


def number_to_words(num: int) -> str:
    """Convert an integer to its cardinal English words.

    Only 0-9999 is spelled out; anything else is returned as digits.

    Args:
        num: Integer to convert

    Returns:
        Words such as "two thousand five hundred one", or the digits
    """
    if num < 0 or num > MAX_SPOKEN_NUMBER:
        return str(num)
    if num < 100:
        return _under_hundred(num)
    if num < 1000:
        hundreds, remainder = divmod(num, 100)
        if remainder == 0:
            return f"{NUMBER_WORDS[hundreds]} hundred"
        return f"{NUMBER_WORDS[hundreds]} hundred {_under_hundred(remainder)}"

    thousands, remainder = divmod(num, 1000)
    head = f"{NUMBER_WORDS[thousands]} thousand"
    if remainder == 0:
        return head
    hundreds, tail = divmod(remainder, 100)
    if hundreds == 0:
        return f"{head} {_under_hundred(tail)}"
    if tail == 0:
        return f"{head} {NUMBER_WORDS[hundreds]} hundred"
    return f"{head} {NUMBER_WORDS[hundreds]} hundred {_under_hundred(tail)}"


def number_to_ordinal(num: int) -> str:
    """Convert an integer to its ordinal English words ("third", "twenty first").

    Values outside 0-9999 are returned as digits.
    """
    if num < 0 or num > MAX_SPOKEN_NUMBER:
        return str(num)
    if num in ORDINAL_WORDS:
        return ORDINAL_WORDS[num]

    if num < 100:
        tens, ones = divmod(num, 10)
        if ones == 0:
            return f"{NUMBER_WORDS[tens * 10]}th"
        return f"{NUMBER_WORDS[tens * 10]} {ORDINAL_WORDS[ones]}"

    if num < 1000:
        hundreds, remainder = divmod(num, 100)
        head = f"{NUMBER_WORDS[hundreds]} hundred"
        if remainder == 0:
            return f"{head}th"
        if remainder in ORDINAL_WORDS:
            return f"{head} {ORDINAL_WORDS[remainder]}"
        tens, ones = divmod(remainder, 10)
        if ones == 0:
            return f"{head} {NUMBER_WORDS[tens * 10]}th"
        return f"{head} {NUMBER_WORDS[tens * 10]} {ORDINAL_WORDS[ones]}"

    thousands, remainder = divmod(num, 1000)
    if remainder == 0:
        return f"{NUMBER_WORDS[thousands]} thousandth"
    return f"{NUMBER_WORDS[thousands]} thousand {number_to_ordinal(remainder)}"


def _is_speakable(digits: str) -> bool:
    # Long digit runs stay as digits without ever reaching int()
    return len(digits.lstrip("0")) <= len(str(MAX_SPOKEN_NUMBER))


def _cardinal(digits: str) -> str:
    if not _is_speakable(digits):
        return digits
    return number_to_words(int(digits))


def _ordinal_token(match: re.Match[str]) -> str:
    if not _is_speakable(match.group(1)):
        return match.group(0)
    return number_to_ordinal(int(match.group(1)))


def _wave_ordinal(match: re.Match[str]) -> str:
    return re.sub(
        r"(\d+)(?:nd|rd|th|st)", _ordinal_token, match.group(0), count=1, flags=_FLAGS
    )


def _times_phrase(match: re.Match[str]) -> str:
    return f"{_cardinal(match.group(1))} times {match.group(2)}"


# Applied in order; each rule rewrites the whole string before the next runs.
_NUMERAL_RULES: list[tuple[re.Pattern[str], Callable[[re.Match[str]], str]]] = [
    (
        re.compile(r"Waves\s*\([^)]+\)\s*(\d+)(nd|rd|th|st)\s+fast", _FLAGS | re.I),
        _wave_ordinal,
    ),
    (re.compile(r"\b(\d+)(nd|rd|th|st)\b", _FLAGS | re.I), _ordinal_token),
    (
        re.compile(r"\bx(\d+)\b", _FLAGS | re.I),
        lambda m: f"times {_cardinal(m.group(1))}",
    ),
    (
        re.compile(r"(\d+)%", _FLAGS),
        lambda m: f"{_cardinal(m.group(1))} percent",
    ),
    (
        re.compile(r"\b(\d+)\s*-\s*(\d+)\s*-\s*(\d+)\b", _FLAGS),
        lambda m: " dash ".join(_cardinal(g) for g in m.groups()),
    ),
    (
        re.compile(r"\b(\d+)x(\d+)\b", _FLAGS),
        lambda m: f"{_cardinal(m.group(1))} times {_cardinal(m.group(2))}",
    ),
    (
        re.compile(r"\b(\d+)x\s+([^\s,;:.!?]+(?:\s+[^\s,;:.!?]+)*)", _FLAGS),
        _times_phrase,
    ),
    (re.compile(r"\b(\d+)x([A-Za-z][^\s,;:.!?]*)", _FLAGS), _times_phrase),
    (re.compile(r"\b\d+\b", _FLAGS), lambda m: _cardinal(m.group(0))),
]


def is_english(language: str | None) -> bool:
    """Return True for English-family language tags ("en", "en-us", "EN")."""
    return bool(language) and language.strip().lower().startswith("en")


def _expand_numerals(text: str) -> str:
    for pattern, replacer in _NUMERAL_RULES:
        text = pattern.sub(replacer, text)
    return text


def expand_english(text: str) -> str:
    """Expand symbols, ordinals and numerals of English text into words.

    Parenthesized segments are expanded on their own first so patterns
    entirely inside parentheses match before the surrounding text.
    """
    text = text.replace("+", " plus ")
    text = _AOE.sub("AOE", text)
    text = _PARENTHESIZED.sub(lambda m: f"({_expand_numerals(m.group(1))})", text)
    return _expand_numerals(text)


def clean_symbols(text: str) -> str:
    """Replace arrows and underscores with spaces and collapse whitespace."""
    text = _ARROWS.sub(" ", text).replace("_", " ")
    return _WHITESPACE.sub(" ", text).strip()


def normalize(text: str, language: str | None) -> str:
    """Normalize text for speech synthesis.

    Args:
        text: Display text
        language: Language the text will be spoken in

    Returns:
        Speakable text. Numerals are only expanded for English.
    """
    if not text:
        return text

    text = clean_symbols(text)
    if is_english(language):
        text = _WHITESPACE.sub(" ", expand_english(text)).strip()
    return text
