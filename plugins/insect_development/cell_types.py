"""
Cell Types for Insect Development

The closed set of cell types the particle engine simulates. Each type has
fixed physical attributes (radius, mass), an initial population, a
self-affinity used for same-type interaction, and a display color hint.

Types are addressed everywhere by a dense integer index built once from the
enum order, so the index of a type never changes for the lifetime of a run.
"""

import enum


class CellType(enum.Enum):
    STEM = "Stem"                # Undifferentiated
    EPITHELIAL = "Epithelial"    # Surface/skin
    NEURAL = "Neural"
    MUSCLE = "Muscle"
    TRACHEAL = "Tracheal"        # Respiratory
    FAT = "Fat"                  # Energy storage
    CUTICLE = "Cuticle"          # Exoskeleton
    HEMOLYMPH = "Hemolymph"      # Circulatory fluid
    SEGMENT = "Segment"          # Body segment organizers
    APPENDAGE = "Appendage"      # Limb/wing/antenna


CELL_TYPE_PROPERTIES = {
    CellType.STEM: {
        "radius": 0.30, "mass": 1.0, "initial_count": 100,
        "self_affinity": 0.4, "color": (230, 230, 230),
    },
    CellType.EPITHELIAL: {
        "radius": 0.25, "mass": 0.8, "initial_count": 50,
        "self_affinity": 0.8, "color": (204, 128, 128),
    },
    CellType.NEURAL: {
        "radius": 0.20, "mass": 0.7, "initial_count": 20,
        "self_affinity": 0.6, "color": (128, 128, 230),
    },
    CellType.MUSCLE: {
        "radius": 0.40, "mass": 1.5, "initial_count": 30,
        "self_affinity": 0.7, "color": (230, 77, 77),
    },
    CellType.TRACHEAL: {
        "radius": 0.30, "mass": 0.9, "initial_count": 10,
        "self_affinity": 0.5, "color": (77, 179, 230),
    },
    CellType.FAT: {
        "radius": 0.45, "mass": 1.8, "initial_count": 15,
        "self_affinity": 0.9, "color": (230, 230, 153),
    },
    CellType.CUTICLE: {
        "radius": 0.35, "mass": 1.2, "initial_count": 25,
        "self_affinity": 0.8, "color": (179, 179, 128),
    },
    CellType.HEMOLYMPH: {
        "radius": 0.20, "mass": 0.5, "initial_count": 20,
        "self_affinity": -0.1, "color": (179, 230, 179),
    },
    CellType.SEGMENT: {
        "radius": 0.40, "mass": 1.3, "initial_count": 40,
        "self_affinity": 0.6, "color": (153, 204, 230),
    },
    CellType.APPENDAGE: {
        "radius": 0.35, "mass": 1.1, "initial_count": 10,
        "self_affinity": 0.7, "color": (128, 230, 128),
    },
}

# Dense index, fixed by enum declaration order
CELL_TYPES = tuple(CellType)
CELL_TYPE_INDEX = {cell_type: i for i, cell_type in enumerate(CELL_TYPES)}


def type_index(cell_type):
    """Dense integer index of a cell type."""
    return CELL_TYPE_INDEX[cell_type]


def self_affinity(cell_type):
    return CELL_TYPE_PROPERTIES[cell_type]["self_affinity"]


def color_hint(cell_type):
    """RGB color hint (0-255) for the visualization layer."""
    return CELL_TYPE_PROPERTIES[cell_type]["color"]


def cell_type_descriptors(spawn_multiplier=1.0, cell_types=CELL_TYPES):
    """Build the per-type descriptor list handed to the particle engine.

    Args:
        spawn_multiplier: Scales every initial population count
        cell_types: Ordered cell types (index in this sequence = type index)

    Returns:
        List of dicts {name, radius, mass, spawn_count, color}, one per type
    """
    descriptors = []
    for cell_type in cell_types:
        props = CELL_TYPE_PROPERTIES[cell_type]
        descriptors.append({
            "name": cell_type.value,
            "radius": props["radius"],
            "mass": props["mass"],
            "spawn_count": props["initial_count"] * spawn_multiplier,
            "color": props["color"],
        })
    return descriptors


def validate_cell_types(cell_types):
    """Reject a cell-type table the simulation cannot run on.

    Raises:
        ValueError: if the table is empty, has duplicates, or names a type
            without physical properties
    """
    if not cell_types:
        raise ValueError("Cell-type table is empty")
    if len(set(cell_types)) != len(cell_types):
        raise ValueError("Cell-type table contains duplicate entries")
    missing = [ct for ct in cell_types if ct not in CELL_TYPE_PROPERTIES]
    if missing:
        raise ValueError(f"No physical properties for cell types: {missing!r}")
