from __future__ import annotations
import json
import logging

from ..engine import Const
from ..engine.Circuit import Circuit

logger = logging.getLogger(__name__)


class Event:
    # This class handles time travel (undo/redo)
    # Every recorded change is a full snapshot of the circuit, kept by id
    __slots__ = ['circuit', 'changes', 'current', 'minimum', 'maximum', 'limit']

    def __init__(self, circuit: Circuit, limit: int = Const.UNDO_LIMIT):
        self.circuit = circuit
        self.limit = limit
        # sparse: change id -> serialized circuit
        self.changes: dict[int, str] = {}
        self.current = 0    # counts up with every change, down with every undo
        self.maximum = 0    # newest change reached, redo goes up to here
        self.minimum = 0    # oldest change kept, undo goes down to here

        # the state we start from
        self.changes[0] = self.snapshot()

    def snapshot(self) -> str:
        return json.dumps(self.circuit.serialize())

    # saves the current state into the history
    def record(self) -> int | bool:
        if self.circuit.running:
            return False

        self.current += 1
        self.changes[self.current] = self.snapshot()

        # a new change invalidates the redo history
        for i in range(self.current + 1, self.maximum + 1):
            self.changes.pop(i, None)
        # forget whatever is past the undo limit
        for i in range(self.minimum, self.current - self.limit):
            self.changes.pop(i, None)

        self.maximum = self.current
        self.minimum = max(self.minimum, self.current - self.limit)
        return self.current

    # loads the circuit from a different point in history
    def restore(self, change_id: int) -> bool:
        if self.circuit.running:
            return False
        if change_id < self.minimum or change_id > self.maximum or change_id == self.current:
            return False
        snapshot = self.changes.get(change_id)
        if snapshot is None:
            return False

        if not self.circuit.load_elements_from_data(json.loads(snapshot)["elements"]):
            return False
        logger.debug("Restored change %d (was %d)", change_id, self.current)
        self.current = change_id
        return True

    # reverses the last change
    def undo(self) -> bool:
        if not self.can_undo():
            return False
        return self.restore(self.current - 1)

    # re-applies a change we just undid
    def redo(self) -> bool:
        if not self.can_redo():
            return False
        return self.restore(self.current + 1)

    def can_undo(self) -> bool:
        return not self.circuit.running and self.current > self.minimum

    def can_redo(self) -> bool:
        return not self.circuit.running and self.current < self.maximum

    def available_undos(self) -> int:
        return self.current - self.minimum

    def available_redos(self) -> int:
        return self.maximum - self.current

    def clear(self):
        # starts a fresh history from the circuit as it is now
        self.changes = {0: self.snapshot()}
        self.current = self.minimum = self.maximum = 0

    def __len__(self):
        return len(self.changes)

    def __str__(self):
        return 'Event Manager'

    def __repr__(self):
        return 'Event Manager'
