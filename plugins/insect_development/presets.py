"""
Insect Body-Plan Presets

Each preset defines a body plan known to produce a recognizable insect
layout. Order presets ("diptera", "coleoptera", ...) set body dimensions,
segment count, per-segment overrides, pattern-layer parameters, structure
flags and allometric growth rules. Species presets ("drosophila", ...) only
set dimensions and segment count and keep the default pattern layer.

Segment overrides are (first, last, size, size_step, appendage_pairs):
segments first..last (inclusive) get size + size_step * (i - first), and
carry appendages when appendage_pairs > 0.

Growth rules are ("segment", index, weight) or ("range", start, end, weight)
where LAST stands for the final segment. A single-segment rule outside the
segment array does nothing; range rules are clamped to it.

Local morphogens are (first, last, morphogen name, strength): each segment in
first..last (LAST allowed, clamped to the array) injects that morphogen
around its own AP position every tick. Plans without the key get
DEFAULT_LOCAL_MORPHOGENS.
"""

import copy
from .cell_types import CellType
from .field import Morphogen
from .genes import Gene

LAST = -1

DEFAULT_BODY = {"length": 10.0, "width": 3.0, "height": 3.0}

DEFAULT_PATTERN = {
    "anterior_dominance": 0.7,
    "segmentation_strength": 0.8,
    "appendage_formation_rate": 0.5,
    "body_symmetry": 1.0,
    "specialization_rate": 0.6,
}

DEFAULT_STRUCTURES = {
    "wings": True,
    "antennae": True,
    "compound_eyes": True,
    "exoskeleton": True,
    "specialized_legs": False,
    "extended_abdomen": False,
}

# Segmentation signal from every trunk segment
DEFAULT_LOCAL_MORPHOGENS = [
    (3, LAST, "Segmentation", 0.1),
]


def _pattern(anterior, segmentation, appendage, specialization, symmetry=1.0):
    return {
        "anterior_dominance": anterior,
        "segmentation_strength": segmentation,
        "appendage_formation_rate": appendage,
        "body_symmetry": symmetry,
        "specialization_rate": specialization,
    }


def _structures(**flags):
    s = dict(DEFAULT_STRUCTURES)
    s.update(flags)
    return s


PRESETS = {
    # =====================================================================
    # INSECT ORDERS
    # =====================================================================
    "diptera": {
        "kind": "order",
        "name": "Diptera",
        "description": "Flies: two wings, large head, short abdomen",
        "body": {"length": 8.0, "width": 2.5, "height": 2.5},
        "segment_count": 13,
        "pattern": _pattern(0.8, 0.7, 0.6, 0.7),
        "structures": _structures(),
        "segment_overrides": [
            (0, 0, 1.2, 0.0, 1),      # antennae
            (3, 3, 0.9, 0.0, 1),
            (4, 4, 1.3, 0.0, 2),      # legs + wings
            (5, 5, 0.9, 0.0, 1),      # legs (halteres)
            (6, 12, 0.7, -0.05, 0),   # shortened abdomen
        ],
        "growth": [
            ("range", 0, 2, 1.0),
            ("range", 6, LAST, -0.5),
        ],
    },
    "hymenoptera": {
        "kind": "order",
        "name": "Hymenoptera",
        "description": "Bees, wasps, ants: four wings, narrow waist",
        "body": {"length": 12.0, "width": 2.5, "height": 2.5},
        "segment_count": 14,
        "pattern": _pattern(0.7, 0.9, 0.7, 0.8),
        "structures": _structures(specialized_legs=True),
        "segment_overrides": [
            (0, 0, 1.0, 0.0, 1),
            (3, 3, 1.0, 0.0, 1),
            (4, 4, 1.1, 0.0, 2),
            (5, 5, 1.0, 0.0, 2),
            (6, 6, 0.5, 0.0, 0),      # petiole
            (7, 12, 0.9, 0.0, 0),
            (13, 13, 0.7, 0.0, 1),    # stinger
        ],
        "growth": [
            ("range", 3, 5, 1.0),
            ("range", 6, 6, -2.0),
        ],
    },
    "lepidoptera": {
        "kind": "order",
        "name": "Lepidoptera",
        "description": "Butterflies and moths: large wing-bearing thorax",
        "body": {"length": 14.0, "width": 3.0, "height": 2.0},
        "segment_count": 14,
        "pattern": _pattern(0.6, 0.7, 0.9, 0.6),
        "structures": _structures(),
        "segment_overrides": [
            (0, 0, 0.8, 0.0, 1),
            (3, 3, 0.9, 0.0, 1),
            (4, 4, 1.3, 0.0, 2),
            (5, 5, 1.2, 0.0, 2),
            (6, 13, 0.8, -0.05, 0),
        ],
        "growth": [
            ("range", 4, 5, 1.5),
        ],
        "local_morphogens": [
            (3, LAST, "Segmentation", 0.1),
            (4, 5, "Appendage", 0.2),      # wing discs
        ],
    },
    "coleoptera": {
        "kind": "order",
        "name": "Coleoptera",
        "description": "Beetles: hardened forewings, robust body",
        "body": {"length": 12.0, "width": 4.0, "height": 3.0},
        "segment_count": 14,
        "pattern": _pattern(0.6, 0.9, 0.7, 0.8),
        "structures": _structures(),
        "segment_overrides": [
            (0, 0, 1.0, 0.0, 1),
            (3, 3, 1.1, 0.0, 1),
            (4, 4, 1.4, 0.0, 2),      # elytra
            (5, 5, 1.2, 0.0, 2),
            (6, 13, 1.1, -0.05, 0),
        ],
        "growth": [
            ("segment", 4, 2.0),
            ("range", 6, 10, 0.5),
        ],
    },
    "orthoptera": {
        "kind": "order",
        "name": "Orthoptera",
        "description": "Grasshoppers and crickets: jumping hind legs",
        "body": {"length": 16.0, "width": 3.0, "height": 4.0},
        "segment_count": 15,
        "pattern": _pattern(0.6, 0.8, 0.8, 0.7),
        "structures": _structures(specialized_legs=True, extended_abdomen=True),
        "segment_overrides": [
            (0, 0, 1.0, 0.0, 1),
            (3, 3, 1.1, 0.0, 1),
            (4, 4, 1.2, 0.0, 2),
            (5, 5, 1.5, 0.0, 2),      # jumping legs
            (6, 13, 1.0, -0.05, 0),
            (14, 14, 0.6, 0.0, 1),    # ovipositor
        ],
        "growth": [
            ("segment", 5, 2.0),
            ("range", 6, 14, 0.5),
        ],
    },
    "hemiptera": {
        "kind": "order",
        "name": "Hemiptera",
        "description": "True bugs: piercing mouthparts, flattened body",
        "body": {"length": 10.0, "width": 3.5, "height": 2.0},
        "segment_count": 14,
        "pattern": _pattern(0.7, 0.8, 0.6, 0.7),
        "structures": _structures(),
        "segment_overrides": [
            (0, 0, 1.1, 0.0, 1),
            (2, 2, 1.0, 0.0, 1),      # piercing mouthparts
            (3, 3, 1.0, 0.0, 1),
            (4, 4, 1.2, 0.0, 2),
            (5, 5, 1.1, 0.0, 2),
            (6, 13, 1.0, -0.05, 0),
        ],
        "growth": [
            ("range", 0, 2, 1.0),
            ("segment", 4, 1.5),
        ],
    },
    "odonata": {
        "kind": "order",
        "name": "Odonata",
        "description": "Dragonflies: long body, four large wings, huge eyes",
        "body": {"length": 20.0, "width": 2.0, "height": 2.0},
        "segment_count": 17,
        "pattern": _pattern(0.5, 0.9, 0.8, 0.7),
        "structures": _structures(extended_abdomen=True),
        "segment_overrides": [
            (0, 0, 1.3, 0.0, 1),
            (3, 3, 1.1, 0.0, 1),
            (4, 4, 1.4, 0.0, 2),
            (5, 5, 1.3, 0.0, 2),
            (6, 14, 0.9, 0.0, 0),
            (15, 15, 0.7, 0.0, 0),
            (16, 16, 0.7, 0.0, 1),    # terminal appendages
        ],
        "growth": [
            ("segment", 0, 1.5),
            ("range", 4, 5, 1.0),
            ("range", 6, LAST, 0.3),
        ],
    },
    "custom": {
        "kind": "order",
        "name": "Custom",
        "description": "Procedural layout, growth derived from structure flags",
        "body": dict(DEFAULT_BODY),
        "segment_count": 13,
        "pattern": dict(DEFAULT_PATTERN),
        "structures": _structures(),
        "segment_overrides": [],
        "growth": None,     # derived, see growth_rules()
    },

    # =====================================================================
    # SPECIES
    # =====================================================================
    "drosophila": {
        "kind": "species",
        "name": "Drosophila",
        "description": "Fruit fly",
        "body": {"length": 8.0, "width": 2.0, "height": 2.0},
        "segment_count": 14,
    },
    "honey_bee": {
        "kind": "species",
        "name": "Honey Bee",
        "description": "Apis mellifera",
        "body": {"length": 12.0, "width": 3.0, "height": 3.0},
        "segment_count": 16,
    },
    "butterfly": {
        "kind": "species",
        "name": "Butterfly",
        "description": "Generic butterfly",
        "body": {"length": 15.0, "width": 5.0, "height": 2.0},
        "segment_count": 15,
    },
    "grasshopper": {
        "kind": "species",
        "name": "Grasshopper",
        "description": "Generic grasshopper",
        "body": {"length": 18.0, "width": 3.0, "height": 4.0},
        "segment_count": 18,
    },
}

PRESET_ORDER = [
    "diptera", "hymenoptera", "lepidoptera", "coleoptera",
    "orthoptera", "hemiptera", "odonata", "custom",
    "drosophila", "honey_bee", "butterfly", "grasshopper",
]

DEFAULT_PRESET = "diptera"


def get_preset(name):
    """Get a preset by name. Returns None if not found."""
    return PRESETS.get(name)


def list_presets(kind=None):
    """Return list of (key, name, description) for presets.
    If kind is given ("order" or "species"), filter to that kind only."""
    return [(k, PRESETS[k]["name"], PRESETS[k]["description"])
            for k in PRESET_ORDER
            if k in PRESETS and (kind is None or PRESETS[k]["kind"] == kind)]


def resolve_body_plan(name):
    """Full body plan for a preset key, with defaults filled in.

    Raises:
        ValueError: if the key is unknown
    """
    preset = get_preset(name)
    if preset is None:
        raise ValueError(
            f"Unknown body plan {name!r}; available: {', '.join(PRESET_ORDER)}")
    plan = copy.deepcopy(preset)
    plan["key"] = name
    plan.setdefault("pattern", dict(DEFAULT_PATTERN))
    plan.setdefault("structures", dict(DEFAULT_STRUCTURES))
    plan.setdefault("segment_overrides", [])
    plan.setdefault("growth", None)
    plan.setdefault("local_morphogens", list(DEFAULT_LOCAL_MORPHOGENS))
    return plan


def growth_rules(plan):
    """Allometric growth rules for a resolved body plan."""
    if plan.get("growth") is not None:
        return list(plan["growth"])
    structures = plan.get("structures", DEFAULT_STRUCTURES)
    rules = []
    if structures.get("wings"):
        rules.append(("range", 4, 5, 1.0))
    if structures.get("compound_eyes"):
        rules.append(("segment", 0, 1.0))
    if structures.get("specialized_legs"):
        rules.append(("segment", 5, 1.5))
    return rules


def apply_segment_overrides(segments, overrides):
    """Apply (first, last, size, size_step, pairs) overrides in place.

    Overrides reaching past the end of the segment array are cut short.
    """
    for first, last, size, step, pairs in overrides:
        for i in range(first, min(last, len(segments) - 1) + 1):
            seg = segments[i]
            seg.size = size + step * (i - first)
            seg.appendage_pairs = pairs
            seg.has_appendages = pairs > 0


def apply_local_morphogens(segments, mapping):
    """Attach (first, last, name, strength) local morphogens in place.

    Segments already carrying the named morphogen have it replaced.
    """
    if not segments:
        return
    last_index = len(segments) - 1
    for first, last, name, strength in mapping:
        if last == LAST:
            last = last_index
        first = min(max(first, 0), last_index)
        last = min(max(last, 0), last_index)
        for i in range(first, last + 1):
            seg = segments[i]
            seg.local_morphogens = [m for m in seg.local_morphogens if m.name != name]
            seg.local_morphogens.append(Morphogen(name, strength, gradient=None))


# =====================================================================
# DEFAULT REGULATORY NETWORK
# =====================================================================

def default_morphogens():
    return [
        Morphogen("Anterior-Posterior", 1.0, 0.3, 0.05,
                  target_cell_types=(CellType.SEGMENT, CellType.NEURAL),
                  color=(0, 0, 255)),
        Morphogen("Dorsal-Ventral", 1.0, 0.3, 0.05,
                  target_cell_types=(CellType.EPITHELIAL, CellType.CUTICLE),
                  color=(0, 255, 0)),
        Morphogen("Segmentation", 0.8, 0.2, 0.1,
                  target_cell_types=(CellType.SEGMENT,),
                  color=(255, 235, 4)),
        Morphogen("Appendage", 0.5, 0.1, 0.2,
                  target_cell_types=(CellType.APPENDAGE,),
                  color=(255, 0, 0)),
        Morphogen("Neural", 0.7, 0.4, 0.05,
                  target_cell_types=(CellType.NEURAL,),
                  color=(128, 0, 255)),
    ]


def default_genes():
    return [
        Gene("Hox1", 0.6, activators=["Anterior-Posterior"],
             expression_results=[CellType.SEGMENT, CellType.NEURAL]),
        Gene("Appendage_Dev", 0.5, activators=["Appendage"],
             repressors=["Anterior-Posterior"],
             expression_results=[CellType.APPENDAGE]),
        Gene("Epithelial_Dev", 0.4, activators=["Dorsal-Ventral"],
             expression_results=[CellType.EPITHELIAL, CellType.CUTICLE]),
        Gene("Neural_Dev", 0.6, activators=["Neural"],
             expression_results=[CellType.NEURAL]),
        Gene("Segmentation", 0.5, activators=["Segmentation"],
             expression_results=[CellType.SEGMENT]),
    ]
