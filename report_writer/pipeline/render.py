"""Template rendering: literal ``{{field}}`` token substitution."""
import re
from typing import List, Mapping

from report_writer.config.logger import get_logger

logger = get_logger(__name__)

_TOKEN_RE = re.compile(r"\{\{(\w+)\}\}")


def find_tokens(template: str) -> List[str]:
    """Token names in order of first appearance."""
    seen = []
    for name in _TOKEN_RE.findall(template):
        if name not in seen:
            seen.append(name)
    return seen


def render(template: str, fields: Mapping[str, object]) -> str:
    """Replace every ``{{name}}`` whose name is in *fields* with its value.

    Single pass: substituted values are never scanned again, so a value
    that itself looks like a token stays as written. Tokens without a
    field are left in the output untouched.
    """
    missing = []

    def _sub(match: "re.Match") -> str:
        name = match.group(1)
        if name in fields:
            return str(fields[name])
        missing.append(name)
        return match.group(0)

    rendered = _TOKEN_RE.sub(_sub, template)
    if missing:
        logger.debug("Unresolved template tokens left in place: %s", sorted(set(missing)))
    return rendered
