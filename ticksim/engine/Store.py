from __future__ import annotations
import random

from . import Gates
from .Gates import LogicElement, ElementError


class Components:
    # A shelf where we keep all the element blueprints
    # This helps us create new elements by just asking for them by name
    gateobjects: dict[str, type[LogicElement]] = {
        cls.__name__: cls for cls in (
            Gates.Button,
            Gates.Switch,
            Gates.LightBulb,
            Gates.DisplayTile,
            Gates.OrGate,
            Gates.NotGate,
            Gates.AndGate,
            Gates.NandGate,
            Gates.XorGate,
            Gates.XnorGate,
            Gates.Monostable,
            Gates.Delay,
            Gates.TFlipFlop,
            Gates.Clock,
            Gates.Randomizer,
            Gates.Label,
        )
    }

    def __init__(self, gateobjects: dict[str, type[LogicElement]] | None = None, rng: random.Random | None = None):
        # per-instance copy, edits never touch the class table
        self.gateobjects = dict(gateobjects if gateobjects is not None else Components.gateobjects)
        self.rng = rng if rng is not None else random.Random()
        # last creation parameter used per element type
        self.recent: dict[str, object] = {}

    def __contains__(self, tag: str) -> bool:
        return tag in self.gateobjects

    def tags(self) -> list[str]:
        return list(self.gateobjects)

    def lookup(self, tag: str) -> type[LogicElement]:
        if tag not in self.gateobjects:
            raise ElementError(f"Unknown element type {tag!r}")
        return self.gateobjects[tag]

    def create(self, tag: str, data=None) -> LogicElement:
        """Builds an element, raising ElementError (or ParameterRequired)
        when it cannot be made."""
        return self.lookup(tag)(data, self)

    def suggest(self, cls: type[LogicElement]):
        return self.recent.get(cls.__name__, cls.suggestion)

    def remember(self, elem: LogicElement):
        if elem.parameter:
            self.recent[elem.tag] = getattr(elem, elem.parameter)
