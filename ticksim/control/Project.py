from __future__ import annotations
import json
import logging

from ..core.QtCore import QPointF
from ..engine import Const
from ..engine.Circuit import Circuit
from ..engine.Store import Components
from ..engine.Serializer import LoadError, create_elements_from_data

logger = logging.getLogger(__name__)


class ProjectError(ValueError):
    # the project file could not be read or belongs to another format version
    pass


class Project:
    """A saved document: the circuit plus the view preferences of whoever
    edits it. The engine never looks at the view values."""
    __slots__ = ['circuit', 'offset', 'zoom', 'tps']

    def __init__(self, circuit: Circuit | None = None, offset: QPointF | None = None, zoom: float = 1.0, tps: int = Const.DEFAULT_TPS):
        self.circuit = circuit if circuit is not None else Circuit()
        self.offset = offset if offset is not None else QPointF()
        self.zoom = zoom
        self.tps = tps

    def to_dict(self) -> dict:
        data = {"fileFormatVersion": Const.FILE_FORMAT_VERSION}
        self.circuit.serialize(data)
        data |= {
            "offset": {"x": self.offset.x(), "y": self.offset.y()},
            "zoom": self.zoom,
            "tps": self.tps,
        }
        return data

    def dumps(self) -> str:
        return json.dumps(self.to_dict())

    def save(self, location: str):
        with open(location, 'w') as file:
            json.dump(self.to_dict(), file)

    @classmethod
    def from_dict(cls, data, store: Components | None = None) -> Project:
        if not isinstance(data, dict):
            raise ProjectError("Project file must contain an object")
        version = data.get("fileFormatVersion")
        if version != Const.FILE_FORMAT_VERSION or isinstance(version, bool):
            raise ProjectError(f"Unsupported file format version {version!r}, expected {Const.FILE_FORMAT_VERSION}")

        # built into a fresh circuit, nothing live is touched on failure
        circuit = Circuit(store=store)
        try:
            circuit.elements = create_elements_from_data(data.get("elements"), circuit.store)
        except LoadError as e:
            raise ProjectError(f"Project elements could not be loaded: {e}") from e

        project = cls(circuit)
        offset = data.get("offset")
        if isinstance(offset, dict):
            try:
                project.offset = QPointF(offset.get("x", 0), offset.get("y", 0))
            except TypeError:
                logger.warning("Ignoring invalid view offset %r", offset)
        if isinstance(data.get("zoom"), (int, float)) and not isinstance(data.get("zoom"), bool):
            project.zoom = float(data["zoom"])
        if isinstance(data.get("tps"), int) and not isinstance(data.get("tps"), bool) and data["tps"] > 0:
            project.tps = data["tps"]
        return project

    @classmethod
    def loads(cls, text: str, store: Components | None = None) -> Project:
        try:
            data = json.loads(text)
        except ValueError as e:
            raise ProjectError("The file doesn't have valid data!") from e
        return cls.from_dict(data, store)

    @classmethod
    def load(cls, location: str, store: Components | None = None) -> Project:
        try:
            with open(location, 'r') as file:
                text = file.read()
        except OSError as e:
            raise ProjectError(f"File loading failed! {e}") from e
        try:
            return cls.loads(text, store)
        except ProjectError as e:
            logger.warning("Rejected project %s: %s", location, e)
            raise
