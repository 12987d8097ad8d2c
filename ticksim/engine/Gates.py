from __future__ import annotations
import random
from typing import TYPE_CHECKING, Any
from urllib.parse import quote, unquote

from ..core.QtCore import QPointF, QRectF
from ..core import geometry
from . import Const
from .Const import ScheduleMask, Edge

if TYPE_CHECKING:
    from .Store import Components


class ElementError(Exception):
    # raised when an element cannot be constructed
    pass


class ParameterRequired(ElementError):
    """Raised when an element needs a value the caller did not supply.

    The caller is expected to obtain ``name`` (showing ``prompt`` and
    offering ``default``) and construct the element again with it."""

    def __init__(self, tag: str, name: str, prompt: str, default: Any):
        super().__init__(f"{tag} element needs a value for '{name}'")
        self.tag = tag
        self.name = name
        self.prompt = prompt
        self.default = default

    def data(self, value, base: dict | None = None) -> dict:
        # plain creation data carrying the obtained value
        return dict(base or {}) | {self.name: value}


class LogicElement:
    # the blueprint for every element on the board
    # it knows its position, power state and who it is wired to
    __slots__ = ['id', 'pos', 'powered', 'begin_powered', 'powered_state_changed', 'inputs', 'outputs']

    full_name = ""
    labeltext = ""
    rx = 0
    ry = 0
    r = 0
    powered_by_default = False    # power state upon creation
    editable_power = False        # if edit() toggles the starting power
    can_input = False             # if connections may end at this element
    can_output = False            # if connections may start at this element

    # elements that need a value at creation time name it here
    parameter: str | None = None
    prompt = ""
    suggestion: Any = None

    def __init__(self, data: dict | QPointF | LogicElement | None = None, store: Components | None = None):
        # only valid right before saving or right after loading
        self.id: int | None = None
        self.pos = QPointF()
        self.powered = self.powered_by_default
        self.begin_powered = self.powered_by_default
        # set during a step when power should flip at the end of that step
        self.powered_state_changed = False

        # insertion ordered sets, values are always None
        self.inputs: dict[LogicElement, None] = {}
        self.outputs: dict[LogicElement, None] = {}

        if data is None:
            return

        if isinstance(data, LogicElement):
            # cloning from an existing element
            if type(data) is not type(self):
                raise ElementError("Cannot create logic element clone - type mismatch!")
            self.pos = QPointF(data.pos)
            begin = data.begin_powered
        elif isinstance(data, QPointF):
            self.pos = QPointF(data)
            begin = None
        elif isinstance(data, dict):
            try:
                self.pos = QPointF(data.get("x", 0), data.get("y", 0))
            except TypeError as e:
                raise ElementError(f"Invalid position for {self.tag} element") from e
            self.id = data.get("id")
            begin = data.get("beginPowered")
        else:
            raise ElementError(f"Cannot create {self.tag} element from {type(data).__name__}")

        if self.editable_power and isinstance(begin, bool):
            self.begin_powered = begin
            self.powered = begin

    @property
    def tag(self) -> str:
        return type(self).__name__

    def __repr__(self):
        return f"{self.tag}({self.pos.x():g}, {self.pos.y():g})"

    # Creation parameter
    def _init_parameter(self, data, store: Components | None):
        name = self.parameter
        if isinstance(data, LogicElement):
            value = getattr(data, name)
        elif isinstance(data, dict) and name in data:
            value = self._decode_parameter(data[name])
        else:
            default = store.suggest(type(self)) if store else self.suggestion
            raise ParameterRequired(self.tag, name, self.prompt, default)

        if self.edit(value) is None:
            raise ElementError(f"Invalid {name} set for {self.tag} element!")

    def _decode_parameter(self, value):
        return value

    # Simulation
    def reset(self):
        # back to how things were before the simulation started
        self.powered = self.begin_powered
        self.powered_state_changed = False

    def update(self) -> ScheduleMask:
        return ScheduleMask.NONE

    def _is_receiving_power(self) -> bool:
        for source in self.inputs:
            if source.powered:
                return True
        return False

    def late_update(self):
        # commit: runs after every scheduled element got its update()
        if self.powered_state_changed:
            self.powered = not self.powered
            self.powered_state_changed = False

    # Editing
    def edit(self, value=None) -> bool | None:
        """Applies an edit. True if something changed, False if not,
        None if the edit was invalid or cancelled."""
        if self.editable_power:
            p = not self.begin_powered
            self.begin_powered = p
            self.powered = p
            return True
        return False

    def copy_properties_from(self, other: LogicElement) -> bool:
        if type(self) is not type(other):
            return False
        if self.editable_power:
            self.begin_powered = other.begin_powered
            self.powered = other.powered
        return True

    # Interaction while running
    def click_start(self) -> ScheduleMask: return ScheduleMask.NONE
    def click_end(self) -> ScheduleMask: return ScheduleMask.NONE
    def click_full(self) -> ScheduleMask: return ScheduleMask.NONE

    # Geometry
    @property
    def top(self) -> float: return self.pos.y() - self.ry
    @property
    def bottom(self) -> float: return self.pos.y() + self.ry
    @property
    def left(self) -> float: return self.pos.x() - self.rx
    @property
    def right(self) -> float: return self.pos.x() + self.rx

    def bounding_rect(self) -> QRectF:
        return geometry.rect_around(self.pos, self.rx, self.ry)

    def is_point_within(self, point: QPointF) -> bool:
        return geometry.is_point_within_rect(point, self.pos, self.rx, self.ry)

    # Display
    def label_text(self) -> str:
        return self.labeltext

    def debug_text(self, index: int, scheduled: bool) -> str:
        return (
            f"{self.tag}\n"
            f"tempID: {self.id}, index: {index}\n"
            f"pos: ({self.pos.x():g}, {self.pos.y():g})\n"
            f"inputs: {len(self.inputs)}, outputs: {len(self.outputs)}\n"
            f"{'' if scheduled else 'not '}scheduled for update\n"
            f"power: {self.powered}, beginPowered: {self.begin_powered}"
        )

    # Saving
    def json_data(self) -> dict:
        data = {
            "elemType": self.tag,
            "id": self.id,
            "x": self.pos.x(),
            "y": self.pos.y(),
        }
        if self.editable_power and self.begin_powered != self.powered_by_default:
            data["beginPowered"] = self.begin_powered
        if self.inputs:
            data["inputs"] = [source.id for source in self.inputs]
        if self.outputs:
            data["outputs"] = [target.id for target in self.outputs]
        return data


class CircleElement(LogicElement):
    __slots__ = ()

    def is_point_within(self, point: QPointF) -> bool:
        return geometry.is_point_within_circle(point, self.pos, self.r)


########################################################################
# Inputs

class Button(CircleElement):
    __slots__ = ()
    full_name = "Input - Pushable Button"
    labeltext = "Button"
    r = rx = ry = 30
    editable_power = True
    can_output = True

    def click_start(self):
        self.powered = True
        return ScheduleMask.OUTPUTS

    def click_end(self):
        self.powered = False
        return ScheduleMask.OUTPUTS


class Switch(CircleElement):
    __slots__ = ()
    full_name = "Input - Toggleable Switch"
    labeltext = "Switch"
    r = rx = ry = 30
    editable_power = True
    can_output = True

    def click_full(self):
        self.powered = not self.powered
        return ScheduleMask.OUTPUTS


########################################################################
# Outputs

class LightBulb(CircleElement):
    __slots__ = ()
    full_name = "Output - Light Bulb"
    labeltext = "\U0001F4A1"
    r = rx = ry = 20
    editable_power = True
    can_input = True

    def update(self):
        # passive display, never schedules anything
        self.powered_state_changed = self._is_receiving_power() != self.powered
        return ScheduleMask.NONE


class DisplayTile(LogicElement):
    __slots__ = ()
    full_name = "Output - Display Tile"
    rx = ry = r = 20
    editable_power = True
    can_input = True

    def update(self):
        self.powered_state_changed = self._is_receiving_power() != self.powered
        return ScheduleMask.NONE


########################################################################
# Gates

class Gate(LogicElement):
    # two-terminal gates, the rule lives in evaluate()
    __slots__ = ()
    rx = 30
    ry = 20
    r = 30
    editable_power = True
    can_input = True
    can_output = True

    def evaluate(self) -> bool:
        return False

    def update(self):
        if self.evaluate() != self.powered:
            self.powered_state_changed = True
            return ScheduleMask.OUTPUTS
        return ScheduleMask.NONE

    def _receiving_all_power(self) -> bool:
        # false with no inputs at all
        if not self.inputs:
            return False
        for source in self.inputs:
            if not source.powered:
                return False
        return True

    def _odd_power_count(self) -> bool:
        odd = False
        for source in self.inputs:
            if source.powered:
                odd = not odd
        return odd


class OrGate(Gate):
    __slots__ = ()
    full_name = "OR Gate"
    labeltext = "OR"

    def evaluate(self):
        return self._is_receiving_power()


class NotGate(Gate):
    __slots__ = ()
    full_name = "NOT Gate"
    labeltext = "NOT"
    r = rx = ry = 20
    powered_by_default = True

    def evaluate(self):
        return not self._is_receiving_power()

    def is_point_within(self, point):
        return geometry.is_point_within_circle(point, self.pos, self.r)


class AndGate(Gate):
    __slots__ = ()
    full_name = "AND Gate"
    labeltext = "AND"

    def evaluate(self):
        return self._receiving_all_power()


class NandGate(Gate):
    __slots__ = ()
    full_name = "NAND Gate"
    labeltext = "NAND"
    powered_by_default = True

    def evaluate(self):
        return not self._receiving_all_power()


class XorGate(Gate):
    __slots__ = ()
    full_name = "XOR Gate"
    labeltext = "XOR"

    def evaluate(self):
        return self._odd_power_count()


class XnorGate(Gate):
    __slots__ = ()
    full_name = "XNOR Gate"
    labeltext = "XNOR"
    powered_by_default = True

    def evaluate(self):
        return not self._odd_power_count()


########################################################################
# Timing and memory

class Monostable(LogicElement):
    # pulses for one tick on the configured edge of its input
    __slots__ = ['edge', 'receiving_power_before']
    full_name = "Monostable circuit"
    labeltext = "MONOSTABLE"
    rx = 60
    ry = 20
    r = 60
    can_input = True
    can_output = True

    def __init__(self, data=None, store=None):
        super().__init__(data, store)
        self.edge = Edge.RISING
        if isinstance(data, LogicElement):
            self.edge = data.edge
        elif isinstance(data, dict) and data.get("edge") is not None:
            try:
                self.edge = Edge(data["edge"])
            except ValueError as e:
                raise ElementError(f"Unknown monostable edge {data['edge']!r}") from e
        # if the element was receiving power in the last update
        self.receiving_power_before = False

    def reset(self):
        super().reset()
        self.receiving_power_before = False

    def edit(self, value=None):
        # cycles rising -> falling -> dual
        self.edge = self.edge.next()
        return True

    def update(self):
        receiving = self._is_receiving_power()
        should_be_powered = False
        if self.edge in (Edge.RISING, Edge.DUAL):
            if receiving and not self.receiving_power_before:
                should_be_powered = True
        if self.edge in (Edge.FALLING, Edge.DUAL):
            if not receiving and self.receiving_power_before:
                should_be_powered = True
        self.receiving_power_before = receiving

        if should_be_powered != self.powered:
            self.powered_state_changed = True
            return ScheduleMask.BOTH if should_be_powered else ScheduleMask.OUTPUTS
        if should_be_powered:
            return ScheduleMask.SELF
        return ScheduleMask.NONE

    def copy_properties_from(self, other):
        if super().copy_properties_from(other):
            self.edge = other.edge
            return True
        return False

    def debug_text(self, index, scheduled):
        return super().debug_text(index, scheduled) + \
            f"\nreceivingPowerBefore: {self.receiving_power_before}\nedge: {self.edge.value}"

    def json_data(self):
        data = super().json_data()
        data["edge"] = self.edge.value
        return data


class TimedElement(LogicElement):
    # shared by Delay and Clock: a period in ticks plus a countdown
    __slots__ = ['delay', 'remaining_delay']
    parameter = "delay"
    suggestion = Const.DEFAULT_DELAY
    minimum = 0

    def __init__(self, data=None, store=None):
        super().__init__(data, store)
        self.delay = self.suggestion
        self.remaining_delay = self.delay
        self._init_parameter(data, store)
        self.remaining_delay = self.delay

    def reset(self):
        super().reset()
        self.remaining_delay = self.delay

    def edit(self, value=None):
        # value comes from the caller's own prompt, None means cancelled
        if value is None or isinstance(value, bool):
            return None
        try:
            new_delay = int(float(value))
        except (TypeError, ValueError, OverflowError):
            return None
        new_delay = max(new_delay, self.minimum)
        if new_delay == self.delay:
            return False

        self.delay = new_delay
        self.remaining_delay = new_delay
        return True

    def label_text(self):
        return str(self.remaining_delay)

    def copy_properties_from(self, other):
        if super().copy_properties_from(other):
            self.delay = other.delay
            self.remaining_delay = other.remaining_delay
            return True
        return False

    def debug_text(self, index, scheduled):
        return super().debug_text(index, scheduled) + \
            f"\ndelay: {self.delay}, remaining: {self.remaining_delay}"

    def json_data(self):
        data = super().json_data()
        data["delay"] = self.delay
        return data


class Delay(TimedElement):
    # output follows input after `delay` ticks, in either direction
    __slots__ = ()
    full_name = "Delay"
    labeltext = "DELAY"
    rx = 40
    ry = 20
    r = 40
    can_input = True
    can_output = True
    prompt = "Set delay: (ticks)"
    minimum = 1

    def update(self):
        receiving = self._is_receiving_power()
        should_be_powered = self.powered

        if receiving and self.powered:
            # no countdown while input and output agree on power
            self.remaining_delay = self.delay
        elif (not receiving and self.powered) or ((receiving or self.remaining_delay < self.delay) and not self.powered):
            self.remaining_delay -= 1
            if self.remaining_delay <= 0:
                self.remaining_delay = self.delay
                should_be_powered = not self.powered

        if should_be_powered != self.powered:
            self.powered_state_changed = True
            return ScheduleMask.BOTH if should_be_powered else ScheduleMask.OUTPUTS
        if self.remaining_delay < self.delay:
            return ScheduleMask.SELF
        return ScheduleMask.NONE

    def is_point_within(self, point):
        return geometry.is_point_within_capsule(point, self.pos, self.rx, self.ry)


class Clock(TimedElement):
    # free running pulser, input power holds it off
    __slots__ = ()
    full_name = "Clock Pulser"
    labeltext = "CLOCK"
    r = rx = ry = 40
    can_input = True
    can_output = True
    prompt = "Set clock period: (ticks)"
    minimum = 0

    def __init__(self, data=None, store=None):
        super().__init__(data, store)
        self.begin_powered = self.delay == 0
        self.powered = self.begin_powered

    def edit(self, value=None):
        changed = super().edit(value)
        if changed:
            self.begin_powered = self.delay == 0
            self.powered = self.begin_powered
        return changed

    def copy_properties_from(self, other):
        if super().copy_properties_from(other):
            self.begin_powered = self.delay == 0
            self.powered = self.begin_powered
            return True
        return False

    def update(self):
        receiving = self._is_receiving_power()

        if receiving:
            # immediately restart the countdown
            should_be_powered = False
            self.remaining_delay = self.delay
        else:
            self.remaining_delay -= 1
            if self.remaining_delay < 0:
                self.remaining_delay = self.delay
            should_be_powered = self.remaining_delay == 0

        if should_be_powered != self.powered:
            self.powered_state_changed = True
            if should_be_powered:
                return ScheduleMask.OUTPUTS if self.delay == 0 else ScheduleMask.BOTH
            return ScheduleMask.OUTPUTS if receiving else ScheduleMask.BOTH
        if not should_be_powered and not receiving:
            return ScheduleMask.SELF
        return ScheduleMask.NONE

    def is_point_within(self, point):
        return geometry.is_point_within_circle(point, self.pos, self.r)


class TFlipFlop(LogicElement):
    # toggles once per rising edge of its input
    __slots__ = ['fired']
    full_name = "Toggle Flip-Flop"
    labeltext = "TOGGLE"
    rx = ry = r = 40
    editable_power = True
    can_input = True
    can_output = True

    def __init__(self, data=None, store=None):
        super().__init__(data, store)
        self.fired = False

    def reset(self):
        super().reset()
        self.fired = False

    def update(self):
        receiving = self._is_receiving_power()
        if receiving != self.fired:
            self.fired = receiving
            self.powered_state_changed = receiving
            return ScheduleMask.OUTPUTS
        return ScheduleMask.NONE

    def debug_text(self, index, scheduled):
        return super().debug_text(index, scheduled) + f"\nfired: {self.fired}"


class Randomizer(LogicElement):
    # rolls a coin whenever its input turns on, off while unpowered
    __slots__ = ['fired', 'rng']
    full_name = "Randomizer"
    labeltext = "RANDOM"
    rx = 60
    ry = 40
    r = 60
    can_input = True
    can_output = True

    def __init__(self, data=None, store=None):
        super().__init__(data, store)
        self.fired = False
        self.rng: random.Random = store.rng if store else random.Random()

    def reset(self):
        super().reset()
        self.fired = False

    def update(self):
        receiving = self._is_receiving_power()
        should_be_powered = self.powered
        if receiving and not self.fired:
            self.fired = True
            should_be_powered = self.rng.random() >= 0.5
        elif not receiving:
            self.fired = False
            should_be_powered = False

        if should_be_powered != self.powered:
            self.powered_state_changed = True
            return ScheduleMask.OUTPUTS
        return ScheduleMask.NONE

    def is_point_within(self, point):
        return geometry.is_point_within_rhombus(point, self.pos, self.rx, self.ry)

    def debug_text(self, index, scheduled):
        return super().debug_text(index, scheduled) + f"\nfired: {self.fired}"


class Label(LogicElement):
    # annotation only, never powered and never wired
    __slots__ = ['text', 'rx']
    full_name = "Label"
    labeltext = "Label"
    ry = r = 20
    parameter = "text"
    prompt = "Enter label text:"
    suggestion = Const.DEFAULT_LABEL

    def __init__(self, data=None, store=None):
        super().__init__(data, store)
        self.text = ""
        self.rx = Const.LABEL_PADDING
        self._init_parameter(data, store)

    def _decode_parameter(self, value):
        return unquote(value) if isinstance(value, str) else value

    def _measure(self):
        # width follows the text, font height is 2*(ry-padding)
        font_size = (self.ry - Const.LABEL_PADDING) * 2
        self.rx = len(self.text) * font_size * Const.LABEL_CHAR_WIDTH / 2 + Const.LABEL_PADDING

    def edit(self, value=None):
        if not value or not isinstance(value, str):
            return None
        if value == self.text:
            return False
        self.text = value
        self._measure()
        return True

    def label_text(self):
        return self.text

    def copy_properties_from(self, other):
        if super().copy_properties_from(other):
            self.text = other.text
            self._measure()
            return True
        return False

    def debug_text(self, index, scheduled):
        return super().debug_text(index, scheduled) + f"\ntextLength: {len(self.text)}"

    def json_data(self):
        data = super().json_data()
        data["text"] = quote(self.text, safe="-_.!~*'()")
        return data
