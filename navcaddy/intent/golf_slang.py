"""
Golf slang, club abbreviations and spoken numbers.

Three ordered dictionaries feed the input normalizer:
    COMPOUND_PHRASES   multi-word numbers and clubs ("one fifty", "seven iron")
    ABBREVIATIONS      single-token clubs and number words ("7i", "pw", "fifty")
    SLANG              golf slang ("flat stick", "dance floor")

Keys are lower-case. Values never contain a key of any dictionary, so
normalizing twice gives the same text as normalizing once.
"""

from typing import Dict

PROFANITY = frozenset({
    "fuck", "shit", "damn", "hell", "ass", "bitch",
    "crap", "piss", "bastard", "cock", "dick",
})

_UNITS = {
    "one": 1, "two": 2, "three": 3, "four": 4, "five": 5,
    "six": 6, "seven": 7, "eight": 8, "nine": 9,
}

_TENS = {
    "ten": 10, "twenty": 20, "thirty": 30, "forty": 40, "fifty": 50,
    "sixty": 60, "seventy": 70, "eighty": 80, "ninety": 90,
}

_TEENS = {
    "eleven": 11, "twelve": 12, "thirteen": 13, "fourteen": 14, "fifteen": 15,
    "sixteen": 16, "seventeen": 17, "eighteen": 18, "nineteen": 19,
}


def _compound_phrases() -> Dict[str, str]:
    phrases: Dict[str, str] = {}

    # "one hundred fifty", "one hundred and fifty"
    for word in ("fifty", "sixty", "seventy", "eighty", "ninety"):
        value = str(100 + _TENS[word])
        phrases[f"one hundred {word}"] = value
        phrases[f"one hundred and {word}"] = value
    phrases["one hundred"] = "100"
    phrases["two hundred"] = "200"

    # Shortened yardages: "one fifty", "one ten"
    for word in ("ten", "twenty", "thirty", "forty", "fifty", "sixty", "seventy", "eighty", "ninety"):
        phrases[f"one {word}"] = str(100 + _TENS[word])

    # "twenty five", "thirty-one"
    for tens in ("twenty", "thirty"):
        for unit, value in _UNITS.items():
            phrases[f"{tens} {unit}"] = str(_TENS[tens] + value)
            phrases[f"{tens}-{unit}"] = str(_TENS[tens] + value)

    for unit in ("three", "four", "five", "six", "seven", "eight", "nine"):
        phrases[f"{unit} iron"] = f"{_UNITS[unit]}-iron"
    for unit in ("three", "five", "seven"):
        phrases[f"{unit} wood"] = f"{_UNITS[unit]}-wood"

    return phrases


COMPOUND_PHRASES: Dict[str, str] = _compound_phrases()

CLUB_ABBREVIATIONS: Dict[str, str] = {
    "3i": "3-iron",
    "4i": "4-iron",
    "5i": "5-iron",
    "6i": "6-iron",
    "7i": "7-iron",
    "8i": "8-iron",
    "9i": "9-iron",
    "pw": "pitching wedge",
    "gw": "gap wedge",
    "aw": "approach wedge",
    "sw": "sand wedge",
    "lw": "lob wedge",
    "3w": "3-wood",
    "5w": "5-wood",
    "7w": "7-wood",
    "d": "driver",
    "2h": "2-hybrid",
    "3h": "3-hybrid",
    "4h": "4-hybrid",
    "5h": "5-hybrid",
}

NUMBER_WORDS: Dict[str, str] = {
    **{word: str(value) for word, value in _UNITS.items()},
    **{word: str(value) for word, value in _TENS.items()},
    **{word: str(value) for word, value in _TEENS.items()},
    "hundred and": "100",
    "hundred": "100",
}

ABBREVIATIONS: Dict[str, str] = {**CLUB_ABBREVIATIONS, **NUMBER_WORDS}

SLANG: Dict[str, str] = {
    "stick": "club",
    "sticks": "clubs",
    "dance floor": "green",
    "tin cup": "hole",
    "bunker": "sand trap",
    "putting surface": "green",
    "fairway metal": "fairway wood",
    "big stick": "driver",
    "big dog": "driver",
    "flat stick": "putter",
}
