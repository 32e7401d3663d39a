"""
Duplicate guard: a student holds at most one assignment per (class, academic year, term).

One lookup per batch, then set membership. The unique constraint on
student_fee_assignments backs this up for writers the guard cannot see.
"""

from typing import Iterable, List, Optional, Set, Tuple

from schoolfees.core.enums import AcademicTerm

from .gateway import FeeGateway


def unique_candidates(student_ids: Iterable[str]) -> List[str]:
    """Drop repeats, keep first-seen order."""
    seen: Set[str] = set()
    out = []
    for sid in student_ids:
        if sid not in seen:
            seen.add(sid)
            out.append(sid)
    return out


async def find_existing_student_ids(
    gateway: FeeGateway,
    class_id: str,
    academic_year: str,
    term: AcademicTerm,
    candidate_ids: Optional[Iterable[str]] = None,
) -> Set[str]:
    existing = {
        a.student_id
        for a in await gateway.list_assignments_by_class_and_term(class_id, academic_year, term)
    }
    if candidate_ids is None:
        return existing
    return existing & set(candidate_ids)


def partition_candidates(candidate_ids: Iterable[str], existing: Set[str]) -> Tuple[List[str], List[str]]:
    """Split into (to assign, already assigned), both in candidate order."""
    fresh, duplicates = [], []
    for sid in candidate_ids:
        (duplicates if sid in existing else fresh).append(sid)
    return fresh, duplicates
