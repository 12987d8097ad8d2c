from __future__ import annotations
import logging
from typing import Iterable, NamedTuple

from ..core.QtCore import QPointF
from ..core import geometry
from . import Const
from .Const import ScheduleMask
from .Gates import LogicElement, ElementError, ParameterRequired
from .Store import Components
from . import Serializer

logger = logging.getLogger(__name__)


class Connection(NamedTuple):
    start: LogicElement
    end: LogicElement


def schedule(elem: LogicElement, mask: ScheduleMask, bucket: dict[LogicElement, None]):
    # 01 = update self, 10 = update outputs, 11 = both
    if mask & ScheduleMask.SELF:
        bucket[elem] = None
    if mask & ScheduleMask.OUTPUTS:
        for target in elem.outputs:
            bucket[target] = None


class Circuit:
    # the board that holds every element and the wires between them
    # it also steps the simulation forward one tick at a time
    __slots__ = ['elements', 'scheduled', 'tick', 'store']

    def __init__(self, data=None, store: Components | None = None):
        self.store = store if store is not None else Components()
        # insertion ordered set, last element is drawn on top
        self.elements: dict[LogicElement, None] = {}
        # elements to evaluate on the next step
        self.scheduled: dict[LogicElement, None] = {}
        self.tick = 0

        if data is not None:
            self.load_elements_from_data(data)

    def __repr__(self):
        return 'Circuit'

    def __len__(self):
        return len(self.elements)

    def __iter__(self):
        return iter(self.elements)

    def __contains__(self, elem):
        return elem in self.elements

    @property
    def running(self) -> bool:
        return self.tick > 0

    ###======= CREATION =======###
    def request_element(self, tag: str, data=None) -> LogicElement | ParameterRequired | None:
        """Creates an element, or returns what the caller still has to supply.

        Returns the new element, a ParameterRequired describing the missing
        value, or None if the element cannot be made at all."""
        try:
            elem = self.store.create(tag, data)
        except ParameterRequired as request:
            return request
        except ElementError as e:
            logger.warning("Could not create %s: %s", tag, e)
            return None
        self.store.remember(elem)
        return elem

    def create_element(self, tag: str, data=None) -> LogicElement | None:
        elem = self.request_element(tag, data)
        if isinstance(elem, ParameterRequired):
            return None
        return elem

    def add_element(self, elem: LogicElement):
        self.elements[elem] = None

    def create_and_add_element(self, tag: str, data=None) -> LogicElement | None:
        elem = self.create_element(tag, data)
        if elem is None:
            return None
        self.add_element(elem)
        return elem

    ###======= REMOVAL =======###
    def remove_element(self, elem: LogicElement):
        # cut every wire touching this element before dropping it
        for source in elem.inputs:
            source.outputs.pop(elem, None)
        for target in elem.outputs:
            target.inputs.pop(elem, None)
        self.elements.pop(elem, None)
        self.scheduled.pop(elem, None)

    def remove_elements(self, subset: Iterable[LogicElement]):
        for elem in list(subset):
            self.remove_element(elem)

    def remove_all_elements(self):
        self.elements.clear()
        self.scheduled.clear()

    ###======= WIRING =======###
    def connect_elements(self, source: LogicElement, target: LogicElement) -> bool:
        # power goes from source to target
        if source is target:
            return False
        if not source.can_output or not target.can_input:
            return False
        if target in source.outputs and source in target.inputs:
            return False

        source.outputs[target] = None
        target.inputs[source] = None
        return True

    def disconnect_elements(self, source: LogicElement, target: LogicElement):
        source.outputs.pop(target, None)
        target.inputs.pop(source, None)

    def dissolve_element(self, elem: LogicElement):
        # replaces the element with direct wires from its inputs to its outputs
        for source in list(elem.inputs):
            for target in list(elem.outputs):
                self.connect_elements(source, target)
        self.remove_element(elem)

    def _copy_wiring(self, old: LogicElement, new: LogicElement):
        # wires the new element like the old one, illegal wires get dropped
        for source in list(old.inputs):
            self.connect_elements(source, new)
        for target in list(old.outputs):
            self.connect_elements(new, target)

    def replace_element(self, old: LogicElement, tag: str, data=None) -> LogicElement | None:
        data = dict(data or {}) | {"x": old.pos.x(), "y": old.pos.y()}
        new = self.create_and_add_element(tag, data)
        if new is None:
            return None

        self._copy_wiring(old, new)
        self.remove_element(old)
        return new

    def replace_elements(self, subset: Iterable[LogicElement], tag: str, data=None) -> dict[LogicElement, None] | None:
        """Replaces every element of ``subset`` with a new ``tag`` element,
        keeping each replacement at the old element's place in the order."""
        template = self.create_element(tag, data)
        if template is None:
            return None

        subset = set(subset)
        replacements: dict[LogicElement, None] = {}
        reordered: dict[LogicElement, None] = {}
        for old in self.elements:
            if old not in subset:
                reordered[old] = None
                continue

            new = self.create_element(tag, template)
            new.pos = QPointF(old.pos)
            self._copy_wiring(old, new)
            reordered[new] = None
            replacements[new] = None
        self.elements = reordered

        # removing the old ones also drops the wires still pointing at them
        self.remove_elements(subset)
        return replacements

    ###======= ORDERING =======###
    def move_element_to_top(self, elem: LogicElement, check_if_already_on_top: bool = False) -> bool:
        if elem not in self.elements:
            raise KeyError("Cannot move element to the top - not found!")
        if check_if_already_on_top and next(reversed(self.elements)) is elem:
            return False
        self.elements.pop(elem)
        self.elements[elem] = None
        return True

    def move_elements_to_top(self, subset: Iterable[LogicElement]) -> bool:
        moving = {elem: None for elem in subset if elem in self.elements}
        if len(moving) == 0 or len(moving) == len(self.elements):
            return False
        if len(moving) == 1:
            return self.move_element_to_top(next(iter(moving)), True)

        # already on top when the first one found sits in the last len(moving) slots
        last_possible_beginning = len(self.elements) - len(moving)
        staying: dict[LogicElement, None] = {}
        appended: dict[LogicElement, None] = {}
        for i, elem in enumerate(self.elements):
            if elem in moving:
                if not appended and i >= last_possible_beginning:
                    return False
                appended[elem] = None
            else:
                staying[elem] = None
        self.elements = staying | appended
        return True

    ###======= PICKING =======###
    def get_element_at_pos(self, point: QPointF) -> LogicElement | None:
        # top-most first
        for elem in reversed(self.elements):
            if elem.is_point_within(point):
                return elem
        return None

    def get_elements_in_area(self, corner1: QPointF, corner2: QPointF, existing: dict | None = None) -> dict[LogicElement, None]:
        found = existing if existing is not None else {}
        for elem in self.elements:
            if geometry.is_point_within_area(elem.pos, corner1, corner2):
                found[elem] = None
        return found

    def get_connection_at_pos(self, point: QPointF) -> Connection | None:
        for start in reversed(self.elements):
            for end in start.outputs:
                a = QPointF(start.pos)
                b = QPointF(end.pos)
                # the two halves of a bidirectional wire are drawn apart
                if end in start.inputs:
                    offset = geometry.perpendicular_offset(a, b, Const.WIRE_BIDIRECTIONAL_OFFSET)
                    a += offset
                    b += offset
                if geometry.is_point_on_varying_line(
                        point, a, b,
                        Const.WIRE_HALF_WIDTH_START,
                        Const.WIRE_HALF_WIDTH_END,
                        Const.WIRE_CLICK_TOLERANCE):
                    return Connection(start, end)
        return None

    ###======= SIMULATION =======###
    def step(self):
        # the first step evaluates everything
        if self.tick == 0:
            self.scheduled = dict.fromkeys(self.elements)

        upcoming: dict[LogicElement, None] = {}
        for elem in self.scheduled:
            schedule(elem, elem.update(), upcoming)
        # nobody sees a new power state until every update() has run
        for elem in self.scheduled:
            elem.late_update()

        self.scheduled = upcoming
        self.tick += 1

    def element_click_start(self, elem: LogicElement):
        schedule(elem, elem.click_start(), self.scheduled)

    def element_click_end(self, elem: LogicElement):
        schedule(elem, elem.click_end(), self.scheduled)

    def element_click_full(self, elem: LogicElement):
        schedule(elem, elem.click_full(), self.scheduled)

    def reset(self):
        self.tick = 0
        self.scheduled.clear()
        for elem in self.elements:
            elem.reset()

    ###======= SAVING =======###
    def assign_ids(self) -> int:
        return Serializer.assign_ids(self.elements)

    def serialize(self, data: dict | None = None, subset=None) -> dict:
        return Serializer.serialize(self.elements, subset, data)

    def load_elements_from_data(self, records) -> bool:
        # replaces every element, the old ones stay if loading fails
        try:
            elements = Serializer.create_elements_from_data(records, self.store)
        except Serializer.LoadError as e:
            logger.warning("Element loading failed! Error: %s", e)
            return False
        self.elements = elements
        self.scheduled = {}
        self.tick = 0
        return True

    def create_and_add_elements_from_data(self, records) -> dict[LogicElement, None]:
        """Adds elements built from records next to the existing ones.
        Raises LoadError without touching the circuit if they cannot be built."""
        new = Serializer.create_elements_from_data(records, self.store)
        self.elements.update(new)
        return new

    ###======= REPORTS =======###
    def diagnose(self) -> str:
        self.assign_ids()
        columns = [
            ("ID", 5),
            ("Element", 14),
            ("Position", 18),
            ("Inputs", 18),
            ("Outputs", 18),
            ("Power", 6),
        ]
        total_width = sum(w for _, w in columns)
        fmt = "".join(f"{{:<{w}}}" for _, w in columns)

        lines = [fmt.format(*[n for n, _ in columns]), "-" * total_width]
        for elem in self.elements:
            ins = ",".join(str(source.id) for source in elem.inputs) or "-"
            outs = ",".join(str(target.id) for target in elem.outputs) or "-"
            # truncate long strings
            ins = ins[:15] + ".." if len(ins) > 17 else ins
            outs = outs[:15] + ".." if len(outs) > 17 else outs
            pos = f"({elem.pos.x():g}, {elem.pos.y():g})"
            lines.append(fmt.format(str(elem.id), elem.tag, pos, ins, outs, "T" if elem.powered else "F"))
        lines.append("-" * total_width)
        return "\n".join(lines)
