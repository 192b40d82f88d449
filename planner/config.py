"""
Configuración del planificador.

Incluye un cargador desde YAML para dejar los parámetros de la búsqueda
reproducibles: tope de créditos, cantidad de planes a conservar y los
presupuestos que cortan búsquedas sin solución.
"""
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any, Dict

import yaml

from .exceptions import ConfigError


@dataclass
class PlannerConfig:
    # Restricciones del alumno
    max_credits: int = 30

    # Búsqueda
    top_n: int = 5
    max_terms: int = 12            # presupuesto de semestres
    max_population: int = 200_000  # presupuesto de planes vivos
    detect_stalls: bool = True

    # Grilla de salida (15 horas x 7 días, desde las 08:00)
    first_hour: int = 8
    n_hours: int = 15

    # Rutas
    data_dir: str = "data"
    output_dir: str = "outputs"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PlannerConfig":
        merged = asdict(cls())
        for k, v in data.items():
            if k in merged:
                merged[k] = v
        return cls(**merged)

    def __post_init__(self):
        for name in ("max_credits", "top_n", "max_terms", "max_population", "n_hours"):
            value = getattr(self, name)
            if not isinstance(value, int) or value <= 0:
                raise ConfigError(f"{name} debe ser un entero positivo (recibido {value!r})")


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    text = path.read_text(encoding="utf-8")
    return yaml.safe_load(text) or {}


def load_config(path: str = "config.yaml") -> PlannerConfig:
    data = _load_yaml(Path(path))
    if not isinstance(data, dict):
        raise ConfigError("config.yaml debe contener un objeto mapeo")
    return PlannerConfig.from_dict(data)
