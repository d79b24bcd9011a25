import re
from functools import lru_cache

# Full-width A-Z, a-z, 0-9 sit exactly 0xFEE0 above their ASCII counterparts
FULL_WIDTH_OFFSET = 0xFEE0
FULL_WIDTH_ALNUM = str.maketrans({
    chr(code + FULL_WIDTH_OFFSET): chr(code)
    for start, end in (("A", "Z"), ("a", "z"), ("0", "9"))
    for code in range(ord(start), ord(end) + 1)
})

FULL_WIDTH_PARENS = re.compile(r"（(.*?)）")
SPACE_BEFORE_PAREN = re.compile(r"(\S)\(")
SPACE_AFTER_PAREN = re.compile(r"\)(\S)")


@lru_cache(maxsize=4096)
def to_half_width(text: str) -> str:
    """Normalize full-width alphanumerics and parentheses for display.

    Parenthesised text is separated from adjacent words by one space.

    Example: "Ｎｏ．１２（北口）行" -> "No．12 (北口) 行"
    """
    result = text.translate(FULL_WIDTH_ALNUM)
    result = FULL_WIDTH_PARENS.sub(r"(\1)", result)
    result = SPACE_BEFORE_PAREN.sub(r"\1 (", result)
    result = SPACE_AFTER_PAREN.sub(r") \1", result)
    return result


def to_half_width_or_none(text: str | None) -> str | None:
    """Like to_half_width, passing None through."""
    if text is None:
        return None
    return to_half_width(text)
