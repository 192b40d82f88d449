import argparse
import logging
import sys
import time
from datetime import date
from pathlib import Path
from typing import List, Optional

import pandas as pd

from planner.config import PlannerConfig, load_config
from planner.data_loader import import_offer_csv, load_bundle, read_subjects
from planner.evaluation import compactness
from planner.model import FinishedPlan, Term
from planner.schedule import build_grid, render_table
from planner.search import SearchResult, SearchStatus, plan_enrollment


def format_plan(plan: FinishedPlan, start: Term, cfg: PlannerConfig) -> str:
    out: List[str] = [f"Puntaje del plan: {plan.score:.4f}"]
    for label, term in zip(plan.term_labels(start), plan.terms):
        out.append("")
        out.append(f"{label}  créditos={term.credits}  puntaje={term.score:.4f}")
        for code in sorted(term.sections):
            slots = ", ".join(str(s) for s in sorted(term.sections[code].slots))
            out.append(f"  {code}: {slots}")
        grid = build_grid(term.sections, cfg.first_hour, cfg.n_hours)
        out.append(render_table(grid, cfg.first_hour))
    return "\n".join(out)


def ranking_frame(result: SearchResult, start: Term) -> pd.DataFrame:
    rows = []
    for rank, plan in enumerate(result.plans, start=1):
        for label, term in zip(plan.term_labels(start), plan.terms):
            c = compactness(term)
            rows.append(
                {
                    "rank": rank,
                    "puntaje_plan": plan.score,
                    "semestre": label,
                    "disciplinas": " ".join(sorted(term.sections)),
                    "creditos": term.credits,
                    "puntaje": term.score,
                    "horas": len(c.points),
                    "dist_media": c.mean_distance,
                }
            )
    return pd.DataFrame(rows)


def export_outputs(result: SearchResult, start: Term, cfg: PlannerConfig, out_dir: Path):
    out_dir.mkdir(parents=True, exist_ok=True)
    for rank, plan in enumerate(result.plans, start=1):
        (out_dir / f"plano_{rank}.txt").write_text(format_plan(plan, start, cfg) + "\n", encoding="utf-8")
    ranking_frame(result, start).to_csv(out_dir / "ranking.csv", index=False)
    if result.history:
        pd.DataFrame(result.history).to_csv(out_dir / "history.csv", index=False)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Planificador de matrícula por semestres")
    parser.add_argument("--config", default="config.yaml", help="Ruta al archivo de configuración")
    parser.add_argument("--data_dir", default=None, help="Directorio de la caché YAML")
    parser.add_argument("--subjects_file", required=True, help="Archivo INSTITUTO:CODIGO por línea")
    parser.add_argument("--term", default=None, help="Semestre inicial, p.ej. 1s2024 (por defecto, hoy)")
    parser.add_argument("--max_cr", type=int, default=None, help="Tope de créditos por semestre")
    parser.add_argument("--top", type=int, default=None, help="Cantidad de planes a guardar")
    parser.add_argument("--scrape", action="store_true", help="Descargar del caderno de horários lo que falte en la caché")
    parser.add_argument("--import_csv", default=None, help="CSV de oferta a volcar en la caché antes de planificar")
    parser.add_argument("--output_dir", default=None)
    parser.add_argument("--log-level", default="WARNING")
    args = parser.parse_args(argv)

    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    cfg = load_config(args.config)
    overrides = {
        "data_dir": args.data_dir,
        "max_credits": args.max_cr,
        "top_n": args.top,
        "output_dir": args.output_dir,
    }
    cfg = PlannerConfig.from_dict({**vars(cfg), **{k: v for k, v in overrides.items() if v is not None}})

    if args.import_csv:
        terms = import_offer_csv(args.import_csv, cfg.data_dir)
        print(f"Importados {len(terms)} semestres en {cfg.data_dir}: {', '.join(terms)}")

    term = Term.parse(args.term) if args.term else Term.from_date(date.today())
    subjects = read_subjects(args.subjects_file)
    print(f"Cargando oferta de {term} y {term.previous()} para {len(subjects)} disciplinas...")
    bundle = load_bundle(cfg.data_dir, subjects, term, scrape=args.scrape)

    start = time.perf_counter()
    result = plan_enrollment(bundle.timesheet_a, bundle.timesheet_b, bundle.credits, cfg)
    elapsed = time.perf_counter() - start

    print(
        f"Estado: {result.status.value} | Disciplinas: {result.goal} | "
        f"Semestres: {result.terms_explored} | Planes: {result.population_size} | Tiempo: {elapsed:.2f}s"
    )
    if result.unoffered:
        print(f"Sin oferta: {', '.join(result.unoffered)}")
    if result.status is not SearchStatus.COMPLETE:
        print(f"No se encontró un plan completo. Pendientes: {', '.join(result.blocked_subjects) or '-'}")

    for rank, plan in enumerate(result.plans, start=1):
        print(f"\n===== PLAN {rank} =====")
        print(format_plan(plan, term, cfg))

    out_dir = Path(cfg.output_dir)
    export_outputs(result, term, cfg, out_dir)
    print(f"\nSe guardaron {len(result.plans)} planes en {out_dir}/")
    return 0 if result.feasible else 1


if __name__ == "__main__":
    sys.exit(main())
