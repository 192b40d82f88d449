"""
Caché en disco de ofertas y créditos (YAML).

Estructura del directorio:
    credits.yaml        codigo -> créditos
    <CODIGO>.yaml       "1s2024" -> lista de turmas, cada una lista de
                        {weekday, start, finish}
"""
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List

import yaml

from .exceptions import CacheError
from .model import Section, Slot, Term, Timesheet

logger = logging.getLogger(__name__)

CREDITS_FILE = "credits.yaml"


def _read_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise CacheError(f"{path} debe contener un objeto mapeo", details={"path": str(path)})
    return data


def _write_yaml(path: Path, data: Dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(data, allow_unicode=True, sort_keys=True), encoding="utf-8")


def section_to_records(section: Section) -> List[Dict[str, int]]:
    return [{"weekday": s.weekday, "start": s.start, "finish": s.finish} for s in section]


def records_to_section(records: List[Dict[str, int]]) -> Section:
    return Section(tuple(Slot(int(r["weekday"]), int(r["start"]), int(r["finish"])) for r in records))


def load_credits(cache_dir: str) -> Dict[str, int]:
    data = _read_yaml(Path(cache_dir) / CREDITS_FILE)
    return {str(code): int(cr) for code, cr in data.items()}


def save_credits(cache_dir: str, credits: Dict[str, int]) -> None:
    path = Path(cache_dir) / CREDITS_FILE
    saved = _read_yaml(path)
    # los créditos ya guardados no se pisan
    for k, v in credits.items():
        saved.setdefault(str(k), int(v))
    _write_yaml(path, saved)


def load_timesheet(cache_dir: str, subjects: Iterable[str], term: Term) -> Timesheet:
    """
    Lee la oferta de `term` para las disciplinas pedidas. Una disciplina sin
    archivo o sin entrada para el semestre queda fuera (no ofrecida).
    """
    key = str(term)
    table: Dict[str, List[Section]] = {}
    for code in subjects:
        path = Path(cache_dir) / f"{code}.yaml"
        if not path.exists():
            logger.warning("Sin caché para %s en %s", code, cache_dir)
            continue
        saved = _read_yaml(path)
        if key in saved:
            table[code] = [records_to_section(rec) for rec in saved[key] or []]
    return Timesheet(table)


def save_timesheet(cache_dir: str, timesheet: Timesheet, term: Term) -> None:
    key = str(term)
    for code in timesheet.subjects():
        path = Path(cache_dir) / f"{code}.yaml"
        saved = _read_yaml(path)
        saved[key] = [section_to_records(sec) for sec in timesheet.sections(code)]
        _write_yaml(path, saved)


def has_timesheet(cache_dir: str, code: str, term: Term) -> bool:
    """True si la caché ya tiene una entrada (aunque sea vacía) de `code` en `term`."""
    return str(term) in _read_yaml(Path(cache_dir) / f"{code}.yaml")
