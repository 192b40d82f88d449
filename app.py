# app.py
import streamlit as st
import pandas as pd
from datetime import date

from planner.config import load_config
from planner.data_loader import load_bundle, read_subjects
from planner.exceptions import PlannerError
from planner.model import Term
from planner.schedule import build_grid, grid_to_frame
from planner.search import SearchStatus, plan_enrollment
from run import ranking_frame

# --- CONFIGURACIÓN DE PÁGINA ---
st.set_page_config(page_title="Planificador de Matrícula", layout="wide", initial_sidebar_state="expanded")

st.markdown("""
    <style>
    .stButton>button {
        width: 100%;
        background-color: #ff4b4b;
        color: white;
        font-weight: bold;
        height: 50px;
    }
    .section-header {
        font-family: Arial, sans-serif;
        font-weight: bold;
        margin-top: 20px;
        margin-bottom: 10px;
        border-bottom: 2px solid #ff4b4b;
        padding-bottom: 5px;
    }
    </style>
""", unsafe_allow_html=True)


def highlight_cells(val):
    return "background-color: #ffffcc; color: #000; font-weight: bold;" if val else ""


# --- SIDEBAR ---
cfg = load_config("config.yaml")
with st.sidebar:
    st.header("Parámetros")
    data_dir = st.text_input("Directorio de caché", value=cfg.data_dir)
    subjects_file = st.text_input("Archivo de disciplinas", value="disciplinas.txt")
    term_text = st.text_input("Semestre inicial", value=str(Term.from_date(date.today())))
    cfg.max_credits = int(st.number_input("Tope de créditos", min_value=1, max_value=60, value=cfg.max_credits))
    cfg.top_n = int(st.number_input("Planes a mostrar", min_value=1, max_value=20, value=cfg.top_n))
    scrape = st.checkbox("Descargar lo que falte en la caché", value=False)
    run_clicked = st.button("PLANIFICAR")

st.title("Planificador de matrícula")

if run_clicked:
    try:
        term = Term.parse(term_text)
        bundle = load_bundle(data_dir, read_subjects(subjects_file), term, scrape=scrape)
        with st.spinner("Buscando planes..."):
            st.session_state["result"] = plan_enrollment(
                bundle.timesheet_a, bundle.timesheet_b, bundle.credits, cfg
            )
        st.session_state["term"] = term
    except (PlannerError, ValueError, OSError) as exc:
        st.error(f"No se pudo planificar: {exc}")

result = st.session_state.get("result")
if result is not None:
    term = st.session_state["term"]
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Estado", result.status.value)
    c2.metric("Disciplinas", result.goal)
    c3.metric("Semestres", result.terms_explored)
    c4.metric("Planes explorados", result.population_size)

    if result.unoffered:
        st.warning(f"Sin oferta en ningún semestre: {', '.join(result.unoffered)}")
    if result.status is not SearchStatus.COMPLETE:
        st.error(f"No hay plan completo. Pendientes: {', '.join(result.blocked_subjects) or '-'}")

    if result.plans:
        st.markdown("<div class='section-header'>RANKING</div>", unsafe_allow_html=True)
        st.dataframe(ranking_frame(result, term), use_container_width=True)

        tabs = st.tabs([f"Plan {i}" for i in range(1, len(result.plans) + 1)])
        for tab, plan in zip(tabs, result.plans):
            with tab:
                st.caption(f"Puntaje: {plan.score:.4f}")
                for label, t in zip(plan.term_labels(term), plan.terms):
                    st.markdown(
                        f"<div class='section-header'>{label} · {t.credits} créditos · puntaje {t.score:.4f}</div>",
                        unsafe_allow_html=True,
                    )
                    grid = grid_to_frame(build_grid(t.sections, cfg.first_hour, cfg.n_hours), cfg.first_hour)
                    grid = grid.loc[(grid != "").any(axis=1)]
                    st.dataframe(grid.style.map(highlight_cells), use_container_width=True)

    if result.history:
        st.markdown("<div class='section-header'>EVOLUCIÓN DE LA POBLACIÓN</div>", unsafe_allow_html=True)
        st.line_chart(pd.DataFrame(result.history).set_index("term")[["population", "complete"]])
