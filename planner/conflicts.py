# planner/conflicts.py
from typing import Iterable

from .model import Section, Slot


def conflicts(slot: Slot, assigned_slots: Iterable[Slot]) -> bool:
    """True si el slot se superpone con alguno ya asignado el mismo día."""
    for other in assigned_slots:
        if (
            slot.weekday == other.weekday
            and slot.start < other.finish
            and slot.finish > other.start
        ):
            return True
    return False


def section_conflicts(section: Section, assigned_slots: Iterable[Slot]) -> bool:
    assigned = list(assigned_slots)
    return any(conflicts(slot, assigned) for slot in section)
