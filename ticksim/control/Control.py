from __future__ import annotations
import json
import logging
from typing import Iterable

from ..core.QtCore import QPointF
from ..engine import Const
from ..engine.Circuit import Circuit
from ..engine.Gates import LogicElement, ParameterRequired
from ..engine.Serializer import LoadError
from .Event_Manager import Event

logger = logging.getLogger(__name__)


class Command:
    # one edit of the circuit, execute() is True when something changed
    def execute(self) -> bool:
        return False


class Add(Command):
    __slots__ = ['circuit', 'tag', 'data', 'element', 'request']
    def __init__(self, circuit: Circuit, tag: str, data=None):
        self.circuit = circuit
        self.tag = tag
        self.data = data
        self.element: LogicElement | None = None
        # filled in when the element needs a value first
        self.request: ParameterRequired | None = None

    def execute(self):
        result = self.circuit.request_element(self.tag, self.data)
        if isinstance(result, ParameterRequired):
            self.request = result
            return False
        if result is None:
            return False
        self.request = None
        self.element = result
        self.circuit.add_element(result)
        return True


class Delete(Command):
    __slots__ = ['circuit', 'elements']
    def __init__(self, circuit: Circuit, elements: Iterable[LogicElement]):
        self.circuit = circuit
        self.elements = [elem for elem in elements if elem in circuit]
    def execute(self):
        if not self.elements:
            return False
        self.circuit.remove_elements(self.elements)
        return True


class Connect(Command):
    __slots__ = ['circuit', 'source', 'target']
    def __init__(self, circuit: Circuit, source: LogicElement, target: LogicElement):
        self.circuit = circuit
        self.source = source
        self.target = target
    def execute(self):
        return self.circuit.connect_elements(self.source, self.target)


class Disconnect(Command):
    __slots__ = ['circuit', 'source', 'target']
    def __init__(self, circuit: Circuit, source: LogicElement, target: LogicElement):
        self.circuit = circuit
        self.source = source
        self.target = target
    def execute(self):
        if self.target not in self.source.outputs:
            return False
        self.circuit.disconnect_elements(self.source, self.target)
        return True


class Dissolve(Command):
    __slots__ = ['circuit', 'element']
    def __init__(self, circuit: Circuit, element: LogicElement):
        self.circuit = circuit
        self.element = element
    def execute(self):
        if self.element not in self.circuit:
            return False
        self.circuit.dissolve_element(self.element)
        return True


class Replace(Command):
    __slots__ = ['circuit', 'elements', 'tag', 'data', 'replacements']
    def __init__(self, circuit: Circuit, elements: Iterable[LogicElement], tag: str, data=None):
        self.circuit = circuit
        self.elements = [elem for elem in elements if elem in circuit]
        self.tag = tag
        self.data = data
        self.replacements: dict[LogicElement, None] = {}
    def execute(self):
        if not self.elements:
            return False
        result = self.circuit.replace_elements(self.elements, self.tag, self.data)
        if result is None:
            return False
        self.replacements = result
        return True


class Edit(Command):
    """Edits one element, then copies its editable state onto the rest of
    the selection."""
    __slots__ = ['element', 'value', 'others']
    def __init__(self, element: LogicElement, value=None, others: Iterable[LogicElement] = ()):
        self.element = element
        self.value = value
        self.others = [elem for elem in others if elem is not element]
    def execute(self):
        if not self.element.edit(self.value):
            return False
        for other in self.others:
            other.copy_properties_from(self.element)
        return True


class CopyProperties(Command):
    __slots__ = ['source', 'targets']
    def __init__(self, source: LogicElement, targets: Iterable[LogicElement]):
        self.source = source
        self.targets = [elem for elem in targets if elem is not source]
    def execute(self):
        changed = False
        for target in self.targets:
            changed |= target.copy_properties_from(self.source)
        return changed


class Move(Command):
    __slots__ = ['elements', 'delta']
    def __init__(self, elements: Iterable[LogicElement], delta: QPointF):
        self.elements = list(elements)
        self.delta = delta
    def execute(self):
        if not self.elements or self.delta.isNull():
            return False
        for elem in self.elements:
            elem.pos = elem.pos + self.delta
        return True


class MoveToTop(Command):
    __slots__ = ['circuit', 'elements']
    def __init__(self, circuit: Circuit, elements: Iterable[LogicElement]):
        self.circuit = circuit
        self.elements = list(elements)
    def execute(self):
        # false when they are already on top, so nothing gets recorded
        return self.circuit.move_elements_to_top(self.elements)


class Paste(Command):
    __slots__ = ['circuit', 'payload', 'offset', 'pasted']
    def __init__(self, circuit: Circuit, payload: str, offset: QPointF | None = None):
        self.circuit = circuit
        self.payload = payload
        self.offset = offset if offset is not None else QPointF()
        self.pasted: dict[LogicElement, None] = {}
    def execute(self):
        try:
            records = json.loads(self.payload)
            pasted = self.circuit.create_and_add_elements_from_data(records)
        except (ValueError, LoadError) as e:
            logger.warning("Nothing pasted: %s", e)
            return False
        for elem in pasted:
            elem.pos = elem.pos + self.offset
        self.pasted = pasted
        return len(pasted) > 0


def copy(circuit: Circuit, elements: Iterable[LogicElement]) -> str:
    # clipboard payload: element records of the selection only
    selection = set(elements)
    return json.dumps(circuit.serialize(subset=selection)["elements"])


class Editor:
    # runs commands against a circuit and records every change that stuck
    __slots__ = ['circuit', 'journal']

    def __init__(self, circuit: Circuit | None = None, limit: int = Const.UNDO_LIMIT):
        self.circuit = circuit if circuit is not None else Circuit()
        self.journal = Event(self.circuit, limit)

    def do(self, command: Command) -> bool:
        # editing is only allowed while the simulation is stopped
        if self.circuit.running:
            return False
        if not command.execute():
            return False
        self.journal.record()
        return True

    def undo(self) -> bool:
        return self.journal.undo()

    def redo(self) -> bool:
        return self.journal.redo()

    def copy(self, elements: Iterable[LogicElement]) -> str:
        return copy(self.circuit, elements)

    def paste(self, payload: str, offset: QPointF | None = None) -> dict[LogicElement, None]:
        command = Paste(self.circuit, payload, offset)
        self.do(command)
        return command.pasted
