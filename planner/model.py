# planner/model.py
import copy
import re
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterator, List, Optional, Set, Tuple

from .exceptions import SlotParseError

Weekday = int  # 1=Domingo ... 7=Sábado
ClockTime = int  # hora*100 + minuto

WEEKDAYS_PT: Dict[str, Weekday] = {
    "Domingo": 1,
    "Segunda": 2,
    "Terça": 3,
    "Quarta": 4,
    "Quinta": 5,
    "Sexta": 6,
    "Sábado": 7,
}
WEEKDAY_NAMES: List[str] = list(WEEKDAYS_PT.keys())

_CLOCK_RE = re.compile(r"^(\d{1,2}):(\d{2})$", re.ASCII)


@dataclass(frozen=True, order=True)
class Term:
    year: int
    half: int  # 1 o 2

    def __post_init__(self):
        if self.half not in (1, 2):
            raise ValueError(f"Semestre inválido: {self.half}")

    def next(self) -> "Term":
        if self.half == 1:
            return Term(self.year, 2)
        return Term(self.year + 1, 1)

    def previous(self) -> "Term":
        if self.half == 1:
            return Term(self.year - 1, 2)
        return Term(self.year, 1)

    @classmethod
    def parse(cls, text: str) -> "Term":
        """'1s2024' -> Term(2024, 1)."""
        parts = text.strip().split("s")
        if len(parts) != 2 or not parts[0].isdigit() or not parts[1].isdigit():
            raise ValueError(f"Semestre con formato inválido: {text!r}")
        return cls(year=int(parts[1]), half=int(parts[0]))

    @classmethod
    def from_date(cls, d: date) -> "Term":
        # Antes de agosto se considera primer semestre
        return cls(year=d.year, half=1 if d.month < 8 else 2)

    def __str__(self) -> str:
        return f"{self.half}s{self.year}"


@dataclass(frozen=True, order=True)
class Slot:
    weekday: Weekday
    start: ClockTime
    finish: ClockTime

    def __post_init__(self):
        if not 1 <= self.weekday <= 7:
            raise SlotParseError(f"Día fuera de rango: {self.weekday}")
        for t in (self.start, self.finish):
            if not (0 <= t // 100 < 24 and 0 <= t % 100 < 60):
                raise SlotParseError(f"Hora inválida: {t}")
        if self.start >= self.finish:
            raise SlotParseError(f"Rango vacío: {self.start}-{self.finish}")

    @property
    def start_hour(self) -> int:
        return self.start // 100

    @property
    def finish_hour(self) -> int:
        return self.finish // 100

    @classmethod
    def parse(cls, weekday_token: str, duration: str) -> "Slot":
        """
        Construye un slot desde el texto del caderno de horários,
        p.ej. ("Segunda", "08:00 - 10:00").
        """
        token = str(weekday_token).strip()
        if token not in WEEKDAYS_PT:
            raise SlotParseError(f"Día de la semana inesperado: {token!r}")
        ends = str(duration).split("-")
        if len(ends) != 2:
            raise SlotParseError(f"Rango horario inválido: {duration!r}")
        times = []
        for end in ends:
            m = _CLOCK_RE.match(end.strip())
            if m is None:
                raise SlotParseError(f"Hora inválida en {duration!r}")
            times.append(int(m.group(1)) * 100 + int(m.group(2)))
        return cls(weekday=WEEKDAYS_PT[token], start=times[0], finish=times[1])

    def __str__(self) -> str:
        return (
            f"{WEEKDAY_NAMES[self.weekday - 1]} "
            f"{self.start // 100:02d}:{self.start % 100:02d}-"
            f"{self.finish // 100:02d}:{self.finish % 100:02d}"
        )


@dataclass(frozen=True, eq=False)
class Section:
    """
    Una turma: patrón semanal de encuentros de una disciplina.
    La igualdad ignora el orden de los slots.
    """
    slots: Tuple[Slot, ...]

    def key(self) -> Tuple[Slot, ...]:
        return tuple(sorted(self.slots))

    def __eq__(self, other) -> bool:
        if not isinstance(other, Section):
            return NotImplemented
        return self.key() == other.key()

    def __hash__(self) -> int:
        return hash(self.key())

    def __deepcopy__(self, memo) -> "Section":
        # inmutable: los clones de un plan comparten las turmas
        return self

    def __iter__(self) -> Iterator[Slot]:
        return iter(self.slots)

    def __len__(self) -> int:
        return len(self.slots)


def remove_duplicate_sections(sections: List[Section]) -> List[Section]:
    """Conserva la primera aparición de cada turma equivalente."""
    seen: Set[Tuple[Slot, ...]] = set()
    out: List[Section] = []
    for sec in sections:
        k = sec.key()
        if k in seen:
            continue
        seen.add(k)
        out.append(sec)
    return out


@dataclass
class Timesheet:
    # código de disciplina -> turmas ofrecidas en el semestre
    table: Dict[str, List[Section]] = field(default_factory=dict)

    def sections(self, code: str) -> List[Section]:
        return self.table.get(code, [])

    def is_offered(self, code: str) -> bool:
        return bool(self.table.get(code))

    def subjects(self) -> List[str]:
        return sorted(self.table)

    def offered_subjects(self) -> List[str]:
        return [c for c in self.subjects() if self.table[c]]

    def remove_duplicates(self) -> None:
        for code in self.table:
            self.table[code] = remove_duplicate_sections(self.table[code])


@dataclass
class TermAssignment:
    sections: Dict[str, Section] = field(default_factory=dict)
    credits: int = 0
    finished: bool = False
    score: float = 0.0

    def assigned_slots(self) -> List[Slot]:
        return [slot for code in sorted(self.sections) for slot in self.sections[code]]

    def commit(self, code: str, section: Section, weight: int) -> None:
        self.sections[code] = section
        self.credits += weight


@dataclass
class PlanInProgress:
    terms: List[TermAssignment]
    covered: Set[str]
    goal: int
    stalled: bool = False

    @property
    def current(self) -> TermAssignment:
        return self.terms[-1]

    @property
    def is_complete(self) -> bool:
        return len(self.covered) >= self.goal

    def commit(self, code: str, section: Section, weight: int) -> None:
        self.current.commit(code, section, weight)
        self.covered.add(code)

    def clone(self) -> "PlanInProgress":
        return copy.deepcopy(self)


@dataclass
class FinishedPlan:
    terms: List[TermAssignment]
    covered: Set[str]
    goal: int
    score: float = 0.0

    @property
    def complete(self) -> bool:
        return len(self.covered) >= self.goal

    def term_labels(self, start: Optional[Term]) -> List[str]:
        if start is None:
            return [f"Semestre {i + 1}" for i in range(len(self.terms))]
        labels, term = [], start
        for _ in self.terms:
            labels.append(str(term))
            term = term.next()
        return labels
