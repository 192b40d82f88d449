"""
Errores del planificador.

Los errores de datos (parseo, créditos faltantes, códigos repetidos) son
fatales: indican entradas corruptas y se propagan hasta el CLI. La falta de
un plan factible NO es un error; se reporta en SearchResult.status.
"""


class PlannerError(Exception):
    """Base de todos los errores del planificador."""

    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class SlotParseError(PlannerError, ValueError):
    """Día de la semana o rango horario con formato inválido."""


class MissingCreditError(PlannerError, KeyError):
    """Una disciplina de la oferta no tiene peso de créditos."""

    def __init__(self, codes):
        codes = sorted(codes)
        super().__init__(
            f"Sin créditos para: {', '.join(codes)}",
            details={"codes": codes},
        )

    def __str__(self):
        return self.message


class DuplicateSubjectError(PlannerError, ValueError):
    """El mismo código de disciplina aparece en más de un instituto."""


class ConfigError(PlannerError, ValueError):
    """Archivo de configuración inválido."""


class CacheError(PlannerError, ValueError):
    """Archivo de la caché con contenido inesperado."""


class ScrapeError(PlannerError):
    """Fallo de red al consultar el caderno de horários."""
