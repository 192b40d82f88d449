"""
Descarga de la oferta desde el caderno de horários de la DAC.

Solo se consulta la red para lo que falta en la caché: las turmas de una
disciplina en un semestre y/o sus créditos. Lo descargado se guarda en la
caché; una respuesta con error guarda una lista vacía de turmas para no
volver a pedirla.
"""
import logging
import time
from typing import Iterable, List, Optional

import requests
from bs4 import BeautifulSoup
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .cache import has_timesheet, load_credits, save_credits, save_timesheet
from .exceptions import ScrapeError
from .model import Section, Slot, Term, Timesheet

logger = logging.getLogger(__name__)

BASE_URL = "https://www.dac.unicamp.br/portal/caderno-de-horarios"
REQUEST_DELAY = 0.5  # segundos entre consultas
CREDITS_LABEL = "Créditos:"


def create_retry_session() -> requests.Session:
    session = requests.Session()
    retries = Retry(
        total=5,
        backoff_factor=2,
        status_forcelist=[429, 500, 502, 503, 504],
        allowed_methods=["GET"],
    )
    session.mount("https://", HTTPAdapter(max_retries=retries))
    session.headers.update({"User-Agent": "planificador-matricula/0.1"})
    return session


def offer_url(institute: str, code: str, term: Term) -> str:
    return f"{BASE_URL}/{term.year}/{term.half}/S/G/{institute}/{code}"


def parse_sections(html: str) -> List[Section]:
    """Una Section por cada bloque de turma con sus encuentros semanales."""
    soup = BeautifulSoup(html, "html.parser")
    sections: List[Section] = []
    for block in soup.select(".turma .panel-body .horariosFormatado"):
        slots = []
        for li in block.find_all("li"):
            day = li.select_one(".diaSemana")
            hours = li.select_one(".horarios")
            if day is None or hours is None:
                continue
            slots.append(Slot.parse(day.get_text(strip=True), hours.get_text(strip=True)))
        sections.append(Section(tuple(slots)))
    return sections


def parse_credits(html: str) -> Optional[int]:
    soup = BeautifulSoup(html, "html.parser")
    for prop in soup.select(".prop"):
        if prop.get_text(strip=True) != CREDITS_LABEL:
            continue
        value = prop.find_next_sibling()
        if value is None:
            return None
        text = value.get_text(strip=True)
        return int(text) if text.isdecimal() and text.isascii() else None
    return None


def scrape_missing(
    cache_dir: str,
    subjects: Iterable,
    term: Term,
    session: Optional[requests.Session] = None,
    delay: float = REQUEST_DELAY,
) -> List[str]:
    """
    Completa la caché de `term` para las disciplinas (SubjectRef) sin datos.
    Devuelve los códigos consultados.
    """
    session = session or create_retry_session()
    credits = load_credits(cache_dir)
    fetched: List[str] = []
    for ref in subjects:
        need_sections = not has_timesheet(cache_dir, ref.code, term)
        need_credits = ref.code not in credits
        if not (need_sections or need_credits):
            continue

        url = offer_url(ref.institute, ref.code, term)
        logger.info("Sin caché para %s en %s; consultando %s", ref.code, term, url)
        time.sleep(delay)
        try:
            resp = session.get(url, timeout=30)
        except requests.RequestException as exc:
            raise ScrapeError(f"No se pudo consultar {url}", details={"code": ref.code}) from exc
        fetched.append(ref.code)

        if not resp.ok:
            logger.warning("Respuesta %s para %s en %s", resp.status_code, ref.code, term)
            if need_sections:
                save_timesheet(cache_dir, Timesheet({ref.code: []}), term)
            continue

        if need_sections:
            save_timesheet(cache_dir, Timesheet({ref.code: parse_sections(resp.text)}), term)
        if need_credits:
            value = parse_credits(resp.text)
            if value is None:
                logger.warning("No se encontraron créditos de %s", ref.code)
            else:
                credits[ref.code] = value
                save_credits(cache_dir, {ref.code: value})
    return fetched
