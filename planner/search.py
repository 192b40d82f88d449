"""
Motor de búsqueda con ramificación.

Avanza una población de planes semestre por semestre alternando las dos
ofertas (semestre par -> oferta A, impar -> oferta B). En cada semestre se
agrega repetidamente la disciplina más restringida; cuando esta tiene más
de una turma sin choque, el plan se clona completo (historia incluida) y
cada clon toma una turma distinta.

Todo es iterativo y acotado por presupuestos de la configuración
(max_terms, max_population); agotar un presupuesto no es un error sino un
resultado SearchStatus.EXHAUSTED.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Set

from .config import PlannerConfig
from .evaluation import rank_plans, score_plan
from .exceptions import MissingCreditError
from .model import FinishedPlan, PlanInProgress, TermAssignment, Timesheet
from .selection import select_next_subject, viable_sections

logger = logging.getLogger(__name__)


class SearchStatus(Enum):
    COMPLETE = "complete"      # todos los planes vivos cubren todas las disciplinas
    INFEASIBLE = "infeasible"  # ningún plan puede progresar más
    EXHAUSTED = "exhausted"    # se agotó max_terms o max_population


@dataclass
class SearchResult:
    status: SearchStatus
    plans: List[FinishedPlan]          # rankeados, el mejor primero
    goal: int
    terms_explored: int
    population_size: int
    stalled_plans: int = 0
    blocked_subjects: List[str] = field(default_factory=list)
    unoffered: List[str] = field(default_factory=list)
    history: List[Dict] = field(default_factory=list)

    @property
    def feasible(self) -> bool:
        return self.status is SearchStatus.COMPLETE


class BranchingSearch:
    def __init__(
        self,
        timesheet_a: Timesheet,
        timesheet_b: Timesheet,
        credits: Dict[str, int],
        cfg: PlannerConfig,
    ):
        self.timesheets = (timesheet_a, timesheet_b)
        self.credits = credits
        self.cfg = cfg
        self._check_credits()

        offered = set(timesheet_a.offered_subjects()) | set(timesheet_b.offered_subjects())
        listed = set(timesheet_a.subjects()) | set(timesheet_b.subjects())
        self.subjects: List[str] = sorted(offered)
        self.unoffered: List[str] = sorted(listed - offered)
        self.goal = len(self.subjects)

        self.population: List[PlanInProgress] = []
        self.history: List[Dict] = []
        self._over_budget = False

    def _check_credits(self) -> None:
        missing: Set[str] = set()
        for ts in self.timesheets:
            missing.update(code for code in ts.subjects() if code not in self.credits)
        if missing:
            raise MissingCreditError(missing)

    def timesheet_for(self, term_index: int) -> Timesheet:
        return self.timesheets[term_index % 2]

    # ------------------------------------------------------------------
    # Estados de la población
    # ------------------------------------------------------------------
    def seed(self) -> None:
        """Un plan por cada turma de la disciplina con menos turmas del semestre 0."""
        ts = self.timesheet_for(0)
        first = select_next_subject(ts, set(), TermAssignment(), self.credits, self.cfg.max_credits)
        if first is None:
            logger.warning("Ninguna disciplina puede iniciar el semestre 0")
            self.population = [PlanInProgress(terms=[TermAssignment()], covered=set(), goal=self.goal)]
            return
        weight = self.credits[first.code]
        for section in first.sections:
            plan = PlanInProgress(terms=[TermAssignment()], covered=set(), goal=self.goal)
            plan.commit(first.code, section, weight)
            self.population.append(plan)
        logger.debug("Semilla %s con %d turmas", first.code, len(first.sections))

    def extend(self) -> None:
        """
        Todo plan vivo recibe un semestre nuevo, incluso los completos: el
        selector no encuentra nada para ellos y el semestre se cierra vacío.
        """
        for plan in self._live_plans():
            plan.terms.append(TermAssignment())

    def step(self, term_index: int) -> int:
        """
        Una pasada sobre los planes con el semestre abierto. Devuelve la
        cantidad de clones creados; se agregan a la población al final de la
        pasada para no visitarlos en la misma.
        """
        ts = self.timesheet_for(term_index)
        spawned: List[PlanInProgress] = []
        for plan in self._open_plans():
            cand = select_next_subject(
                ts, plan.covered, plan.current, self.credits, self.cfg.max_credits
            )
            if cand is None:
                plan.current.finished = True
                continue
            options = viable_sections(ts.sections(cand.code), plan.current)
            weight = self.credits[cand.code]
            clones = [plan.clone() for _ in options[1:]]
            plan.commit(cand.code, options[0], weight)
            for clone, section in zip(clones, options[1:]):
                clone.commit(cand.code, section, weight)
            spawned.extend(clones)
        self.population.extend(spawned)
        if len(self.population) > self.cfg.max_population:
            self._over_budget = True
        return len(spawned)

    def run_term(self, term_index: int) -> int:
        branches = 0
        while self._open_plans() and not self._over_budget:
            branches += self.step(term_index)
        return branches

    def mark_stalls(self) -> int:
        """
        Un plan que cerró dos semestres seguidos (uno de cada oferta) sin
        agregar nada no va a progresar nunca: el resultado de un semestre
        depende solo de lo ya cubierto y de la oferta.
        """
        newly = 0
        for plan in self._live_plans():
            if plan.is_complete or len(plan.terms) < 2:
                continue
            if not plan.terms[-1].sections and not plan.terms[-2].sections:
                plan.stalled = True
                newly += 1
        return newly

    # ------------------------------------------------------------------
    def run(self) -> SearchResult:
        if self.unoffered:
            logger.warning("Disciplinas sin turmas en ninguna oferta: %s", ", ".join(self.unoffered))

        status = SearchStatus.EXHAUSTED
        term_index = 0
        while term_index < self.cfg.max_terms:
            if not self.population:
                self.seed()
            else:
                self.extend()
            branches = self.run_term(term_index)
            if self._over_budget:
                logger.warning(
                    "Población supera max_population=%d en el semestre %d",
                    self.cfg.max_population, term_index,
                )
                self._record(term_index, branches)
                break

            if self.cfg.detect_stalls:
                stalled = self.mark_stalls()
                if stalled:
                    logger.warning("%d planes estancados en el semestre %d", stalled, term_index)
            self._record(term_index, branches)

            live = self._live_plans()
            if not live:
                status = SearchStatus.INFEASIBLE
                break
            if all(plan.is_complete for plan in live):
                status = SearchStatus.COMPLETE
                break
            term_index += 1
        else:
            logger.warning("Se agotó max_terms=%d sin cubrir todas las disciplinas", self.cfg.max_terms)

        return self._build_result(status, term_index)

    # ------------------------------------------------------------------
    def _live_plans(self) -> List[PlanInProgress]:
        return [p for p in self.population if not p.stalled]

    def _open_plans(self) -> List[PlanInProgress]:
        return [p for p in self._live_plans() if not p.current.finished]

    def _record(self, term_index: int, branches: int) -> None:
        complete = sum(1 for p in self.population if p.is_complete)
        stalled = sum(1 for p in self.population if p.stalled)
        self.history.append(
            {
                "term": term_index,
                "population": len(self.population),
                "branches": branches,
                "complete": complete,
                "stalled": stalled,
            }
        )
        logger.info(
            "Semestre %d: planes=%d nuevas_ramas=%d completos=%d estancados=%d",
            term_index, len(self.population), branches, complete, stalled,
        )

    def _build_result(self, status: SearchStatus, term_index: int) -> SearchResult:
        finished = [score_plan(p) for p in self.population if p.is_complete]
        blocked: Set[str] = set()
        for plan in self.population:
            if not plan.is_complete:
                blocked.update(code for code in self.subjects if code not in plan.covered)
        stalled = sum(1 for p in self.population if p.stalled)
        return SearchResult(
            status=status,
            plans=rank_plans(finished, self.cfg.top_n),
            goal=self.goal,
            terms_explored=min(term_index + 1, self.cfg.max_terms),
            population_size=len(self.population),
            stalled_plans=stalled,
            blocked_subjects=sorted(blocked),
            unoffered=list(self.unoffered),
            history=self.history,
        )


def plan_enrollment(
    timesheet_a: Timesheet,
    timesheet_b: Timesheet,
    credits: Dict[str, int],
    cfg: PlannerConfig,
) -> SearchResult:
    return BranchingSearch(timesheet_a, timesheet_b, credits, cfg).run()
