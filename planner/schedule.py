# planner/schedule.py
from typing import Dict, Optional, Tuple

import numpy as np
import pandas as pd

from .model import WEEKDAY_NAMES, Section

CELL_WIDTH = 9
HOUR_COL = "+-------------+"


def build_grid(sections: Dict[str, Section], first_hour: int = 8, n_hours: int = 15) -> np.ndarray:
    """Matriz [hora, día] con el código que ocupa cada hora entera."""
    grid = np.full((n_hours, 7), "", dtype=object)
    for code in sorted(sections):
        for slot in sections[code]:
            for hour in range(slot.start_hour, slot.finish_hour):
                row = hour - first_hour
                if 0 <= row < n_hours:
                    grid[row, slot.weekday - 1] = code
    return grid


def occupied_rows(grid: np.ndarray) -> Optional[Tuple[int, int]]:
    rows = [i for i in range(grid.shape[0]) if any(grid[i])]
    if not rows:
        return None
    return rows[0], rows[-1] + 1


def render_table(grid: np.ndarray, first_hour: int = 8) -> str:
    """
    Tabla de ancho fijo. Solo se dibujan las horas ocupadas; celdas vecinas
    iguales se fusionan (sin borde entre ellas).
    """
    border = HOUR_COL + ("-" * CELL_WIDTH + "+") * 7
    lines = [border, "|             |" + "|".join(f"{d:^{CELL_WIDTH}}" for d in WEEKDAY_NAMES) + "|"]
    span = occupied_rows(grid)
    if span is not None:
        top, bottom = span
        for row in range(top, bottom):
            sep = HOUR_COL
            for day in range(7):
                if row > top and grid[row, day] == grid[row - 1, day]:
                    sep += " " * CELL_WIDTH + "+"
                else:
                    sep += "-" * CELL_WIDTH + "+"
            lines.append(sep)

            hour = first_hour + row
            text = f"| {hour:02d}:00-{hour + 1:02d}:00 |"
            for day in range(7):
                text += f"{grid[row, day]:^{CELL_WIDTH}}"
                if day < 6 and grid[row, day] == grid[row, day + 1]:
                    text += " "
                else:
                    text += "|"
            lines.append(text)
    lines.append(border)
    return "\n".join(lines)


def grid_to_frame(grid: np.ndarray, first_hour: int = 8) -> pd.DataFrame:
    df = pd.DataFrame(grid, columns=WEEKDAY_NAMES)
    df.index = [f"{h:02d}:00-{h + 1:02d}:00" for h in range(first_hour, first_hour + grid.shape[0])]
    return df
