# planner/evaluation.py
from dataclasses import dataclass
from typing import Iterable, List

import numpy as np

from .model import FinishedPlan, PlanInProgress, TermAssignment


@dataclass
class Compactness:
    points: np.ndarray       # [n, 2] -> (día, hora)
    centroid: np.ndarray     # (día medio, hora media)
    mean_distance: float
    score: float


def occupancy_points(assignment: TermAssignment) -> np.ndarray:
    """Un punto (día, hora) por cada hora entera ocupada en el semestre."""
    points = [
        (slot.weekday, hour)
        for slot in assignment.assigned_slots()
        for hour in range(slot.start_hour, slot.finish_hour)
    ]
    return np.array(points, dtype=float).reshape(-1, 2)


def compactness(assignment: TermAssignment) -> Compactness:
    """
    Puntaje = n / (distancia media al centroide)^2.
    Horarios concentrados puntúan alto; si el resultado no es finito
    (ningún punto, un solo punto o todos coincidentes) vale 0.
    """
    pts = occupancy_points(assignment)
    if len(pts) == 0:
        return Compactness(pts, np.zeros(2), 0.0, 0.0)
    centroid = pts.mean(axis=0)
    mean_dist = float(np.linalg.norm(pts - centroid, axis=1).mean())
    with np.errstate(divide="ignore", invalid="ignore"):
        score = np.float64(len(pts)) / np.float64(mean_dist) ** 2
    if not np.isfinite(score):
        score = 0.0
    return Compactness(pts, centroid, mean_dist, float(score))


def score_term(assignment: TermAssignment) -> float:
    return compactness(assignment).score


def score_plan(plan: PlanInProgress) -> FinishedPlan:
    """Anota cada semestre con su puntaje y promedia."""
    for term in plan.terms:
        term.score = score_term(term)
    total = float(np.mean([t.score for t in plan.terms])) if plan.terms else 0.0
    return FinishedPlan(
        terms=plan.terms,
        covered=set(plan.covered),
        goal=plan.goal,
        score=total,
    )


def rank_plans(plans: Iterable[FinishedPlan], top_n: int = 5) -> List[FinishedPlan]:
    """
    Orden ascendente por puntaje y nos quedamos con la cola (los mejores).
    Se devuelven del mejor al peor: rank 1 = índice 0.
    """
    ordered = sorted(plans, key=lambda p: p.score)
    best = ordered[-top_n:] if top_n > 0 else []
    return list(reversed(best))
