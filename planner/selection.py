# planner/selection.py
from dataclasses import dataclass
from typing import Dict, List, Optional, Set

from .conflicts import section_conflicts
from .model import Section, TermAssignment, Timesheet


@dataclass(frozen=True)
class Candidate:
    code: str
    sections: List[Section]  # turmas sin choque, en el orden de la oferta


def viable_sections(sections: List[Section], assignment: TermAssignment) -> List[Section]:
    assigned = assignment.assigned_slots()
    return [sec for sec in sections if not section_conflicts(sec, assigned)]


def select_next_subject(
    timesheet: Timesheet,
    covered: Set[str],
    assignment: TermAssignment,
    credits: Dict[str, int],
    max_credits: int,
) -> Optional[Candidate]:
    """
    Elige la disciplina más restringida (menos turmas sin choque) que todavía
    puede entrar en el semestre. Empates por código ascendente.
    None significa que el semestre ya no admite más disciplinas.
    """
    best: Optional[Candidate] = None
    for code in timesheet.subjects():
        if code in covered or code in assignment.sections:
            continue
        if assignment.credits + credits[code] > max_credits:
            continue
        options = viable_sections(timesheet.sections(code), assignment)
        if not options:
            continue
        # subjects() ya viene ordenado: solo reemplazamos con estrictamente menos
        if best is None or len(options) < len(best.sections):
            best = Candidate(code=code, sections=options)
    return best
