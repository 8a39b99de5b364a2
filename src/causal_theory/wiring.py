"""
WIRING DIAGRAMS: String-diagram semantics for terms

A term is evaluated to a port graph:
- Boxes are generator occurrences, appended in topological order
- Wires are either input ports ("in", i) or box outputs ("out", box, k)
- Identity and σ only route wires, Δ shares a wire, ◇ drops one

Two terms are structurally equal iff their diagrams are isomorphic with
input and output ports fixed.
"""

from typing import Dict, List, Optional, Tuple
from dataclasses import dataclass, field

from .term import (
    Compose, Delete, Duplicate, Generator, GeneratorRef, Identity, Objects,
    Swap, Tensor, Term,
)

Wire = Tuple  # ("in", i) | ("out", box_index, k)


@dataclass(frozen=True)
class Box:
    """One occurrence of a generator, fed by the given wires"""
    generator: Generator
    inputs: Tuple[Wire, ...]


@dataclass
class WiringDiagram:
    dom: Objects
    cod: Objects
    boxes: List[Box] = field(default_factory=list)
    outputs: Tuple[Wire, ...] = ()


def to_wiring(term: Term) -> WiringDiagram:
    """Evaluate a term into its string diagram"""
    diagram = WiringDiagram(dom=term.dom, cod=term.cod)
    inputs = tuple(("in", i) for i in range(len(term.dom)))
    diagram.outputs = _trace(term, inputs, diagram.boxes)
    return diagram


def _trace(term: Term, wires: Tuple[Wire, ...], boxes: List[Box]) -> Tuple[Wire, ...]:
    if isinstance(term, Identity):
        return wires
    if isinstance(term, GeneratorRef):
        index = len(boxes)
        boxes.append(Box(term.generator, wires))
        return tuple(("out", index, k) for k in range(len(term.cod)))
    if isinstance(term, Compose):
        return _trace(term.second, _trace(term.first, wires, boxes), boxes)
    if isinstance(term, Tensor):
        split = len(term.left.dom)
        return _trace(term.left, wires[:split], boxes) + _trace(term.right, wires[split:], boxes)
    if isinstance(term, Swap):
        split = len(term.left)
        return wires[split:] + wires[:split]
    if isinstance(term, Duplicate):
        return (wires[0], wires[0])
    if isinstance(term, Delete):
        return ()
    raise TypeError(f"Unknown term node {type(term).__name__}")


# ============================================================================
# CANONICAL LABELS
# ============================================================================

class DiagramLabeler:
    """
    Interns box labels so that boxes with the same generator fed by the
    same (labelled) wires get the same integer id, across any number of
    diagrams sharing this labeler.
    """

    def __init__(self):
        self._table: Dict[Tuple, int] = {}

    def _intern(self, label: Tuple) -> int:
        ident = self._table.get(label)
        if ident is None:
            ident = len(self._table)
            self._table[label] = ident
        return ident

    def box_labels(self, diagram: WiringDiagram) -> List[int]:
        labels: List[int] = []
        for box in diagram.boxes:
            gen = box.generator
            label = (gen.name, gen.dom, gen.cod, tuple(self._wire_label(w, labels) for w in box.inputs))
            labels.append(self._intern(label))
        return labels

    @staticmethod
    def _wire_label(wire: Wire, labels: List[int]) -> Tuple:
        if wire[0] == "in":
            return wire
        return ("out", labels[wire[1]], wire[2])

    def invariant_key(self, diagram: WiringDiagram) -> Tuple:
        """
        Isomorphism invariant: equal for isomorphic diagrams, but may
        coincide for non-isomorphic ones that differ only in which of several
        identical boxes a wire comes from.
        """
        labels = self.box_labels(diagram)
        outputs = tuple(self._wire_label(w, labels) for w in diagram.outputs)
        return (diagram.dom, diagram.cod, tuple(sorted(labels)), outputs)


# ============================================================================
# ISOMORPHISM
# ============================================================================

def diagrams_isomorphic(
    d1: WiringDiagram,
    d2: WiringDiagram,
    labeler: Optional[DiagramLabeler] = None
) -> bool:
    """
    Decide isomorphism of two diagrams with fixed ports.

    Boxes are matched in topological order against unused boxes of equal
    label whose inputs agree under the partial matching; ties between
    identical boxes are resolved by backtracking.
    """
    if d1.dom != d2.dom or d1.cod != d2.cod or len(d1.boxes) != len(d2.boxes):
        return False

    labeler = labeler or DiagramLabeler()
    labels1 = labeler.box_labels(d1)
    labels2 = labeler.box_labels(d2)
    if sorted(labels1) != sorted(labels2):
        return False

    by_label: Dict[int, List[int]] = {}
    for index, label in enumerate(labels2):
        by_label.setdefault(label, []).append(index)

    mapping: List[int] = []
    used = [False] * len(d2.boxes)

    def map_wire(wire: Wire) -> Wire:
        if wire[0] == "in":
            return wire
        return ("out", mapping[wire[1]], wire[2])

    def extend(i: int) -> bool:
        if i == len(d1.boxes):
            return tuple(map_wire(w) for w in d1.outputs) == d2.outputs
        wanted = tuple(map_wire(w) for w in d1.boxes[i].inputs)
        for candidate in by_label[labels1[i]]:
            if used[candidate] or d2.boxes[candidate].inputs != wanted:
                continue
            used[candidate] = True
            mapping.append(candidate)
            if extend(i + 1):
                return True
            mapping.pop()
            used[candidate] = False
        return False

    return extend(0)
