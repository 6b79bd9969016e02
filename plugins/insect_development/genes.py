"""
Gene Regulatory Network

Boolean genes gated by whole-field morphogen averages. A gene is expressed
when every activator's average reaches its threshold and no repressor's
average does. Averages are taken over the entire grid, so expression has
no spatial sensitivity; a gene is either on everywhere or off everywhere.
"""

import logging

logger = logging.getLogger(__name__)

EFFECT_ADHESION = "adhesion"
EFFECT_MIGRATION = "migration"

# Multiplier applied to a target type's interactions while the gene is on
EFFECT_FACTORS = {
    EFFECT_ADHESION: 1.5,
    EFFECT_MIGRATION: 0.5,
    None: 1.0,
}


def infer_effect(name):
    """Interaction effect implied by a gene name (None if neutral)."""
    if "Adhesion" in name:
        return EFFECT_ADHESION
    if "Migration" in name:
        return EFFECT_MIGRATION
    return None


class Gene:
    """A threshold-gated regulatory gene.

    Args:
        name: Unique identifier (exact-match key for forced expression)
        threshold: Expression threshold shared by activators and repressors
        activators: Morphogen names that must all reach the threshold
        repressors: Morphogen names of which none may reach the threshold
        expression_results: CellTypes whose interactions the gene modulates
        effect: "adhesion", "migration" or None. Inferred from the name
            when omitted

    Raises:
        ValueError: if an explicit effect is not one of EFFECT_FACTORS
    """

    def __init__(self, name, threshold=0.5, activators=(), repressors=(),
                 expression_results=(), effect="infer"):
        self.name = name
        self.threshold = threshold
        self.activators = tuple(activators)
        self.repressors = tuple(repressors)
        self.expression_results = tuple(expression_results)
        if effect == "infer":
            effect = infer_effect(name)
        elif effect not in EFFECT_FACTORS:
            raise ValueError(f"Unknown gene effect {effect!r} for {name!r}; "
                             f"expected one of {sorted(k for k in EFFECT_FACTORS if k)} or None")
        self.effect = effect
        self.is_expressed = False

    @property
    def factor(self):
        return EFFECT_FACTORS[self.effect]

    def copy(self):
        gene = Gene(self.name, self.threshold, self.activators,
                    self.repressors, self.expression_results, self.effect)
        gene.is_expressed = self.is_expressed
        return gene

    def __repr__(self):
        state = "on" if self.is_expressed else "off"
        return f"Gene({self.name!r}, threshold={self.threshold}, {state})"


class GeneNetwork:
    """Ordered list of genes evaluated against a MorphogenField."""

    def __init__(self, genes):
        self.genes = list(genes)
        self._index = {g.name: i for i, g in enumerate(self.genes)}

    def __iter__(self):
        return iter(self.genes)

    def __len__(self):
        return len(self.genes)

    def should_express(self, gene, field):
        """Evaluate one gene's activator/repressor condition.

        Morphogens absent from the field are skipped, so a gene whose
        activators are all unknown passes the activator check.
        """
        for name in gene.activators:
            m = field.index_of(name)
            if m is None:
                continue
            if field.average(m) < gene.threshold:
                return False

        for name in gene.repressors:
            m = field.index_of(name)
            if m is None:
                continue
            if field.average(m) >= gene.threshold:
                return False

        return True

    def evaluate(self, field):
        """Set every gene's expression flag from current field averages."""
        for gene in self.genes:
            gene.is_expressed = self.should_express(gene, field)

    def express(self, name, value):
        """Force a gene's expression flag until the next evaluation pass.

        Returns:
            True if the gene exists, False otherwise (no effect)
        """
        i = self._index.get(name)
        if i is None:
            logger.debug("express: no gene named %r", name)
            return False
        self.genes[i].is_expressed = bool(value)
        return True

    def get(self, name):
        i = self._index.get(name)
        return None if i is None else self.genes[i]

    def find(self, fragment):
        """First gene whose name contains `fragment`, or None."""
        for gene in self.genes:
            if fragment in gene.name:
                return gene
        return None

    def expressed(self):
        return [g for g in self.genes if g.is_expressed]

    def expressed_names(self):
        return [g.name for g in self.genes if g.is_expressed]

    def reset(self):
        for gene in self.genes:
            gene.is_expressed = False
