# planner/data_loader.py
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Tuple

import pandas as pd

from .cache import load_credits, load_timesheet, save_credits, save_timesheet
from .exceptions import DuplicateSubjectError
from .model import Section, Slot, Term, Timesheet
from .scraping import REQUEST_DELAY, scrape_missing

OFFER_COLUMNS = ["codigo", "semestre", "turma", "dia", "horario"]


@dataclass(frozen=True)
class SubjectRef:
    institute: str
    code: str


@dataclass(frozen=True)
class DataBundle:
    term: Term
    timesheet_a: Timesheet   # oferta del semestre inicial
    timesheet_b: Timesheet   # oferta del semestre anterior, como pronóstico del siguiente
    credits: Dict[str, int]
    subjects: List[SubjectRef]


def read_subjects(path: str) -> List[SubjectRef]:
    """
    Lee el archivo de disciplinas, una por línea con formato INSTITUTO:CODIGO.
    Los códigos deben ser únicos entre institutos.
    """
    refs: List[SubjectRef] = []
    owner: Dict[str, str] = {}
    for line in Path(path).read_text(encoding="utf-8").splitlines():
        parts = [p.strip() for p in line.split(":")]
        if len(parts) < 2 or not parts[0] or not parts[1]:
            continue
        inst, code = parts[0], parts[1]
        if code in owner:
            if owner[code] != inst:
                raise DuplicateSubjectError(
                    f"Código {code} repetido en {owner[code]} y {inst}",
                    details={"code": code, "institutes": [owner[code], inst]},
                )
            continue
        owner[code] = inst
        refs.append(SubjectRef(institute=inst, code=code))
    return refs


def load_offer_csv(path: str) -> Tuple[Dict[str, Timesheet], Dict[str, int]]:
    """
    CSV con una fila por encuentro semanal:
        codigo, semestre, turma, dia, horario[, creditos]
    Devuelve una oferta por semestre ("1s2024" -> Timesheet) y el mapa de créditos.
    """
    df = pd.read_csv(path, dtype=str)
    missing = [c for c in OFFER_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"Faltan columnas en {path}: {missing}")
    df = df.dropna(subset=["codigo", "semestre"])
    df["codigo"] = df["codigo"].str.strip()
    df["semestre"] = df["semestre"].map(lambda s: str(Term.parse(s)))

    credits: Dict[str, int] = {}
    if "creditos" in df.columns:
        for code, grp in df.dropna(subset=["creditos"]).groupby("codigo", sort=True):
            credits[code] = int(grp["creditos"].iloc[0])

    timesheets: Dict[str, Timesheet] = {}
    for (term_key, code), grp in df.groupby(["semestre", "codigo"], sort=True):
        sections: List[Section] = []
        # Filas sin turma: la disciplina figura pero no se ofrece
        rows = grp.dropna(subset=["turma", "dia", "horario"])
        for _, turma in rows.groupby("turma", sort=False):
            slots = tuple(Slot.parse(r.dia, r.horario) for r in turma.itertuples())
            sections.append(Section(slots))
        timesheets.setdefault(term_key, Timesheet()).table[code] = sections

    for ts in timesheets.values():
        ts.remove_duplicates()
    return timesheets, credits


def import_offer_csv(csv_path: str, cache_dir: str) -> List[str]:
    """Vuelca el CSV de oferta en la caché YAML. Devuelve los semestres importados."""
    timesheets, credits = load_offer_csv(csv_path)
    for term_key, ts in timesheets.items():
        save_timesheet(cache_dir, ts, Term.parse(term_key))
    if credits:
        save_credits(cache_dir, credits)
    return sorted(timesheets)


def load_bundle(
    data_dir: str,
    subjects: List[SubjectRef],
    term: Term,
    scrape: bool = False,
    session=None,
    delay: float = REQUEST_DELAY,
) -> DataBundle:
    """
    Oferta del semestre `term` (A) y del anterior (B) desde la caché. Con
    `scrape`, lo que falte en la caché se descarga antes de leerla.
    """
    if scrape:
        for t in (term, term.previous()):
            scrape_missing(data_dir, subjects, t, session=session, delay=delay)
    codes = [s.code for s in subjects]
    ts_a = load_timesheet(data_dir, codes, term)
    ts_b = load_timesheet(data_dir, codes, term.previous())
    ts_a.remove_duplicates()
    ts_b.remove_duplicates()
    return DataBundle(
        term=term,
        timesheet_a=ts_a,
        timesheet_b=ts_b,
        credits=load_credits(data_dir),
        subjects=subjects,
    )
