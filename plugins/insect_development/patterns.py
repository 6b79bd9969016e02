"""
Developmental Pattern Modules

Time-windowed activation rules driven by developmental progress. Each tick a
module computes an activation level from progress alone (ramp, sine pulse,
ramp x decay window) and, inside its window or above its threshold, pulses
morphogens or forces gene expression.

Modules address morphogens and genes by name fragment and act on the first
match; a fragment with no match does nothing.
"""

import math
import numpy as np


def _clamp01(x):
    return min(max(x, 0.0), 1.0)


class PatternTarget:
    """What modules act on: the morphogen field and the gene network."""

    def __init__(self, field, genes):
        self.field = field
        self.genes = genes

    def morphogen(self, fragment):
        return self.field.find(fragment)

    def activate(self, fragment, level):
        morphogen = self.field.find(fragment)
        if morphogen is None:
            return False
        return self.field.activate(morphogen.name, level)

    def express(self, fragment, value):
        gene = self.genes.find(fragment)
        if gene is None:
            return False
        return self.genes.express(gene.name, value)


class DevelopmentalModule:
    """A named activation rule over developmental progress.

    Args:
        name: Display name
        activation: f(progress) -> activation level
        response: f(progress, level, target) applying the module's effects
        spatial_domain: (min, max) region along the AP axis (informational)
        target_genes: Gene names the module is associated with
    """

    def __init__(self, name, activation, response, spatial_domain=(0.0, 1.0),
                 target_genes=()):
        self.name = name
        self.activation = activation
        self.response = response
        self.spatial_domain = tuple(spatial_domain)
        self.target_genes = tuple(target_genes)
        self.activation_level = 0.0

    def update(self, progress, target):
        self.activation_level = self.activation(progress)
        self.response(progress, self.activation_level, target)
        return self.activation_level

    def __repr__(self):
        return f"DevelopmentalModule({self.name!r}, level={self.activation_level:.3f})"


def build_modules(pattern, structures):
    """Module list for a body plan.

    Head, Thorax and Abdomen formation are always present; Wing, Eye and
    Specialized Legs only when the matching structure flag is set. Pattern
    parameters are read from `pattern` on every call, so later edits to the
    dict take effect immediately.
    """

    # -- Head: early ramp scaled by anterior dominance -----------------------
    def head_activation(p):
        return _clamp01(p * 2.0) * pattern["anterior_dominance"]

    def head_response(p, level, target):
        if p > 0.1:
            morphogen = target.morphogen("Anterior")
            if morphogen is not None:
                target.activate("Anterior", level * morphogen.concentration)

    # -- Thorax: sine pulse over the whole run --------------------------------
    def thorax_activation(p):
        return math.sin(_clamp01(p) * math.pi) * 0.8

    def thorax_response(p, level, target):
        if 0.2 < p < 0.8:
            target.activate("Segmentation", level * pattern["segmentation_strength"])
            if structures.get("wings") and p > 0.3:
                target.activate("Appendage", level * pattern["appendage_formation_rate"])

    # -- Abdomen: late ramp ---------------------------------------------------
    def abdomen_activation(p):
        return _clamp01((p - 0.3) * 1.5) * 0.7

    def abdomen_response(p, level, target):
        if p > 0.3:
            target.activate("Segmentation", level * pattern["segmentation_strength"] * 0.8)
            if structures.get("extended_abdomen") and p > 0.5:
                target.activate("Neural", level * 0.5)
        if p > 0.7:
            target.express("Epithelial_Dev", level > 0.4)

    modules = [
        DevelopmentalModule("Head Formation", head_activation, head_response,
                            (0.0, 0.3), ("Hox1", "Neural_Dev")),
        DevelopmentalModule("Thorax Formation", thorax_activation, thorax_response,
                            (0.3, 0.5), ("Appendage_Dev", "Epithelial_Dev")),
        DevelopmentalModule("Abdomen Formation", abdomen_activation, abdomen_response,
                            (0.5, 1.0), ("Segmentation",)),
    ]

    if structures.get("wings"):
        def wing_activation(p):
            if 0.4 < p < 0.8:
                return math.sin((p - 0.4) * 2.5 * math.pi) * pattern["appendage_formation_rate"]
            return 0.0

        def wing_response(p, level, target):
            if level > 0.1:
                target.activate("Appendage", level)
                target.express("Appendage_Dev", True)

        modules.append(DevelopmentalModule(
            "Wing Formation", wing_activation, wing_response,
            (0.35, 0.45), ("Appendage_Dev",)))

    if structures.get("compound_eyes"):
        def eye_activation(p):
            # Rises over the first third, shuts off by p = 0.7
            return (_clamp01(p * 3.0) * _clamp01((0.7 - p) * 3.0)
                    * pattern["specialization_rate"])

        def eye_response(p, level, target):
            if level > 0.1:
                target.activate("Neural", level)
                target.express("Neural_Dev", True)

        modules.append(DevelopmentalModule(
            "Eye Formation", eye_activation, eye_response,
            (0.05, 0.15), ("Neural_Dev",)))

    if structures.get("specialized_legs"):
        def legs_activation(p):
            if 0.5 < p < 0.9:
                return (math.sin((p - 0.5) * 2.5 * math.pi)
                        * pattern["specialization_rate"]
                        * pattern["appendage_formation_rate"])
            return 0.0

        def legs_response(p, level, target):
            if level > 0.2:
                target.activate("Appendage", level * 1.5)
                target.express("Appendage_Dev", True)

        modules.append(DevelopmentalModule(
            "Specialized Legs", legs_activation, legs_response,
            (0.4, 0.5), ("Appendage_Dev",)))

    return modules


def activation_profile(module, samples=101):
    """Sample a module's activation over progress in [0, 1] (no side effects)."""
    progress = np.linspace(0.0, 1.0, samples)
    return progress, np.array([module.activation(p) for p in progress])
