"""
Interaction Matrix Generator

Synthesizes the pairwise attraction rules handed to the particle engine.

Base values come from a fixed biological rule table, checked in order:

  Epithelial -> Epithelial          0.8
  Muscle     -> Muscle              0.7
  Neural     -> Neural              0.6
  Appendage  -> Appendage/Segment   0.9
  Stem       -> any non-Stem        0.3
  Cuticle    -> Epithelial          0.5
  Tracheal   -> Tracheal            0.4
  Hemolymph  -> any non-Hemolymph  -0.3
  Fat        -> Fat                 0.7
  Segment    -> Segment             0.6
  otherwise                        -0.1

Self-pairs never consult the table; they use the per-type self-affinity.

Every expressed gene with target cell types rescales the (target, other)
interactions by its effect factor. When that yields any rule at all, the
whole rule set is replaced by the generated rules; otherwise the previous
rule set stays in force. Rules are never patched individually.
"""

import numpy as np
from .cell_types import CellType, CELL_TYPES, self_affinity

DEFAULT_ATTRACTION = -0.1

_SAME_TYPE_RULES = {
    CellType.EPITHELIAL: 0.8,
    CellType.MUSCLE: 0.7,
    CellType.NEURAL: 0.6,
}


class InteractionRule:
    """Directed attraction from type A toward type B (negative = repulsion)."""

    __slots__ = ("type_a", "type_b", "attraction")

    def __init__(self, type_a, type_b, attraction):
        self.type_a = type_a
        self.type_b = type_b
        self.attraction = attraction

    def as_tuple(self):
        return (self.type_a, self.type_b, self.attraction)

    def __eq__(self, other):
        if not isinstance(other, InteractionRule):
            return NotImplemented
        return self.as_tuple() == other.as_tuple()

    def __hash__(self):
        return hash(self.as_tuple())

    def __repr__(self):
        return f"InteractionRule({self.type_a}, {self.type_b}, {self.attraction:+.3f})"


def base_attraction(a, b):
    """Attraction of cell type `a` toward cell type `b` from the rule table."""
    if a == b and a in _SAME_TYPE_RULES:
        return _SAME_TYPE_RULES[a]
    if a == CellType.APPENDAGE and b in (CellType.APPENDAGE, CellType.SEGMENT):
        return 0.9
    if a == CellType.STEM and b != CellType.STEM:
        return 0.3
    if a == CellType.CUTICLE and b == CellType.EPITHELIAL:
        return 0.5
    if a == CellType.TRACHEAL and b == CellType.TRACHEAL:
        return 0.4
    if a == CellType.HEMOLYMPH and b != CellType.HEMOLYMPH:
        return -0.3
    if a == CellType.FAT and b == CellType.FAT:
        return 0.7
    if a == CellType.SEGMENT and b == CellType.SEGMENT:
        return 0.6
    return DEFAULT_ATTRACTION


def pair_attraction(a, b):
    """Base attraction with self-pairs routed to the self-affinity table."""
    if a == b:
        return self_affinity(a)
    return base_attraction(a, b)


def gene_factor(gene):
    return gene.factor


def to_matrix(rules, n_types=len(CELL_TYPES), fill=0.0):
    """Dense (n_types, n_types) matrix view of a rule list.

    Later rules for the same pair overwrite earlier ones, matching how the
    engine applies them in order.
    """
    matrix = np.full((n_types, n_types), fill, dtype=np.float64)
    for rule in rules:
        matrix[rule.type_a, rule.type_b] = rule.attraction
    return matrix


class InteractionMatrixGenerator:
    """Builds base and gene-modulated rule sets over a fixed cell-type table.

    Args:
        cell_types: Ordered cell types (position = dense type index)
    """

    def __init__(self, cell_types=CELL_TYPES):
        self.cell_types = tuple(cell_types)
        self._index = {ct: i for i, ct in enumerate(self.cell_types)}

    def base_rules(self):
        """Complete N x N closure of base attractions, self-pairs included."""
        rules = []
        for a in self.cell_types:
            for b in self.cell_types:
                rules.append(InteractionRule(self._index[a], self._index[b],
                                             pair_attraction(a, b)))
        return rules

    def modulated_rules(self, genes):
        """Rules contributed by the expressed genes, in gene order.

        For each expressed gene, each target type T and each other type X,
        the (T, X) attraction is the base value times the gene's factor.
        """
        rules = []
        for gene in genes:
            if not gene.is_expressed or not gene.expression_results:
                continue
            factor = gene_factor(gene)
            for target in gene.expression_results:
                if target not in self._index:
                    continue
                for other in self.cell_types:
                    rules.append(InteractionRule(
                        self._index[target], self._index[other],
                        pair_attraction(target, other) * factor))
        return rules

    def regenerate(self, current_rules, genes):
        """Return the rule set for this tick.

        Returns:
            (rules, replaced): the new rule list and whether it replaced
            `current_rules`. When no expressed gene yields a rule the
            current list is returned unchanged.
        """
        rules = self.modulated_rules(genes)
        if rules:
            return rules, True
        return current_rules, False

