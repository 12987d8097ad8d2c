from __future__ import annotations
import logging
from typing import Iterable

from .Gates import LogicElement, ElementError
from .Store import Components

logger = logging.getLogger(__name__)


class LoadError(ValueError):
    # element records could not be turned back into elements
    pass


def assign_ids(elements: Iterable[LogicElement], initial: int = 0) -> int:
    """Gives every element a consecutive id so records can refer to each other.
    Returns the next unused id."""
    i = initial
    for elem in elements:
        elem.id = i
        i += 1
    return i


def serialize(elements: Iterable[LogicElement], subset=None, data: dict | None = None) -> dict:
    """Bundles the elements into plain data. Ids are assigned over every
    element even when only ``subset`` gets written, so a subset keeps the
    same ids it would have in a full save."""
    elements = list(elements)
    assign_ids(elements)
    if data is None:
        data = {}
    data["elements"] = [elem.json_data() for elem in elements if subset is None or elem in subset]
    return data


def _resolve(ids, by_id: dict[int, LogicElement]) -> list[LogicElement]:
    # references to ids without a record are dropped
    found = []
    if not isinstance(ids, (list, tuple)):
        return found
    for i in ids:
        if isinstance(i, int) and not isinstance(i, bool) and i in by_id:
            found.append(by_id[i])
    return found


def create_elements_from_data(records, store: Components) -> dict[LogicElement, None]:
    """Builds a fresh ordered set of elements from element records.

    Nothing outside the returned set is touched, so a failure leaves the
    caller's graph as it was."""
    if records is None:
        raise LoadError("No data provided to create elements from!")
    if not isinstance(records, (list, tuple)):
        raise LoadError(f"Element records must be a list, not {type(records).__name__}")

    by_id: dict[int, LogicElement] = {}
    pending: dict[LogicElement, tuple] = {}
    for record in records:
        if not isinstance(record, dict):
            raise LoadError("Element record must be an object")
        tag = record.get("elemType")
        if not isinstance(tag, str) or tag not in store:
            raise LoadError(f"Unknown element type {tag!r}")
        try:
            elem = store.create(tag, record)
        except ElementError as e:
            raise LoadError(str(e)) from e

        if not isinstance(elem.id, int) or isinstance(elem.id, bool):
            logger.warning("Skipping %s record without a valid id", tag)
            continue
        # a later record with the same id wins
        by_id[elem.id] = elem
        pending[elem] = (record.get("inputs"), record.get("outputs"))

    elements: dict[LogicElement, None] = {}
    for i in sorted(by_id):
        elem = by_id[i]
        inputs, outputs = pending[elem]
        for source in _resolve(inputs, by_id):
            if source is not elem and source.can_output and elem.can_input:
                elem.inputs[source] = None
        for target in _resolve(outputs, by_id):
            if target is not elem and elem.can_output and target.can_input:
                elem.outputs[target] = None
        elements[elem] = None

    # keep edges symmetric even when the records were not
    for elem in elements:
        for source in elem.inputs:
            source.outputs[elem] = None
        for target in elem.outputs:
            target.inputs[elem] = None

    return elements
