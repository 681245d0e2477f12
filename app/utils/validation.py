import re
from typing import Iterable, List, Optional, Union

SKILL_SEPARATOR = ", "

AVAILABILITY_MODES = ["online", "offline", "hybrid"]


def validate_url_format(url: Optional[str]) -> bool:
    """Validate URL format."""
    if not url:
        return True  # Allow empty/null

    url_pattern = r"^https?:\/\/[^\s/$.?#][^\s]*$"
    return bool(re.match(url_pattern, url))


def split_skills(value: Optional[str]) -> List[str]:
    """Split a stored skill field into its labels."""
    if not value:
        return []
    return [s.strip() for s in value.split(",") if s.strip()]


def join_skills(skills: Iterable[str]) -> str:
    """Join skill labels the way the profile editor stores them."""
    return SKILL_SEPARATOR.join(s.strip() for s in skills if s and s.strip())


def normalize_skill_field(value: Union[str, List[str], None]) -> str:
    """Accept a stored string verbatim or build one from a list of labels.

    Strings are not re-joined: matching is exact equality on the whole
    field, so a caller-supplied string must round-trip unchanged.
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return join_skills(value)


def validate_availability_mode(mode: Optional[str]) -> Optional[str]:
    if mode is None or mode == "":
        return None
    if mode not in AVAILABILITY_MODES:
        raise ValueError(
            f"availability_mode must be one of: {', '.join(AVAILABILITY_MODES)}"
        )
    return mode
