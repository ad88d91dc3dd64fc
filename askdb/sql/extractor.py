"""
SQL extraction from model output.

Models wrap SQL in markdown fences, prepend explanations or append a
trailing semicolon. ``extract`` reduces such output to a single bare
statement. Applying it twice gives the same result as applying it once.
"""

import re

_FENCE = re.compile(r"^```[a-zA-Z]*\n?|```$")
_FIRST_SELECT = re.compile(r"\bselect\b[\s\S]*?(?=;|\Z)", re.IGNORECASE)
_TRAILING_TERMINATORS = re.compile(r"[;\s]+\Z")


def extract(model_output: str) -> str:
    """
    Return the first SELECT statement found in ``model_output``.

    Code fences and every backtick are removed first. The statement runs up
    to (not including) the first semicolon. Without any SELECT token the
    cleaned text is returned minus trailing semicolons; the execution
    policy rejects it later.
    """
    text = _FENCE.sub("", (model_output or "").strip())
    text = text.replace("`", "")

    match = _FIRST_SELECT.search(text)
    if match:
        return match.group(0).strip()

    return _TRAILING_TERMINATORS.sub("", text).strip()
