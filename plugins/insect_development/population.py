"""
Stage-driven cell division.

Division does not create particles directly. It raises the engine's spawn
targets for the cell types that proliferate in the current stage, and the
engine grows its population toward them.
"""

from .cell_types import CELL_TYPES, CellType
from .stages import DevelopmentalStage

# stage -> [(cell type, weight on the division rate)]
DIVISION_RULES = {
    DevelopmentalStage.EGG: [(CellType.STEM, 1.0)],
    DevelopmentalStage.EMBRYO: [(CellType.STEM, 1.0)],
    DevelopmentalStage.LARVA: [
        (CellType.EPITHELIAL, 0.5),
        (CellType.MUSCLE, 0.3),
        (CellType.TRACHEAL, 0.2),
    ],
    DevelopmentalStage.PUPA: [
        (CellType.MUSCLE, 0.5),
        (CellType.APPENDAGE, 1.0),
    ],
    DevelopmentalStage.ADULT: [],
}


def divide_cells(engine, stage, division_rate, cell_types=CELL_TYPES):
    """Grow the spawn targets of the proliferating cell types for `stage`.

    Types missing from `cell_types` (the engine's table) are skipped.

    Returns:
        List of (type_index, new_count) pairs sent to the engine
    """
    updates = []
    index = {ct: i for i, ct in enumerate(cell_types)}
    for cell_type, weight in DIVISION_RULES.get(stage, ()):
        t = index.get(cell_type)
        if t is None:
            continue
        new_count = engine.spawn_target(t) * (1.0 + division_rate * weight)
        engine.update_spawn_target(t, new_count)
        updates.append((t, new_count))
    return updates


def maybe_divide(engine, stage, division_rate, dt, rng, cell_types=CELL_TYPES):
    """Run a division round with probability division_rate * dt."""
    if rng.random() < division_rate * dt:
        return divide_cells(engine, stage, division_rate, cell_types)
    return []
