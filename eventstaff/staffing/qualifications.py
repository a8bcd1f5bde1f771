"""Qualification gate: may a user take a staff category on an event?"""

from typing import Any, Iterable, List, Optional, Sequence, Set

from .records import QualificationRequirement, UserQualificationRecord
from .requirements import qualification_names


def _required_names(requirements: Optional[Sequence[Any]], category: str) -> List[str]:
    """
    Names required for `category`, from decoded or raw requirement entries.

    Only the first entry for a category counts. An empty result means the
    category has no qualification requirements.
    """
    for requirement in requirements or ():
        if isinstance(requirement, QualificationRequirement):
            if requirement.category == category:
                return list(requirement.qualifications)
        elif isinstance(requirement, dict) and requirement.get('category') == category:
            return qualification_names(requirement.get('qualifications'))
    return []


def held_names(user_qualifications: Iterable[Any]) -> Set[str]:
    """Names of held qualifications; accepts records or plain names."""
    names = set()
    for qualification in user_qualifications or ():
        if isinstance(qualification, UserQualificationRecord):
            names.add(qualification.name)
        elif isinstance(qualification, str):
            names.add(qualification)
    return names


def missing_qualifications(
    requirements: Optional[Sequence[Any]],
    category: str,
    user_qualifications: Iterable[Any],
) -> List[str]:
    """Required names for `category` the user does not hold, in requirement order."""
    held = held_names(user_qualifications)
    return [name for name in _required_names(requirements, category) if name not in held]


def is_eligible(
    requirements: Optional[Sequence[Any]],
    category: str,
    user_qualifications: Iterable[Any],
) -> bool:
    """True when the user holds every qualification the category requires."""
    return not missing_qualifications(requirements, category, user_qualifications)
