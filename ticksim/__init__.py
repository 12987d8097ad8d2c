"""Tick-based digital logic simulation engine."""

from .engine.Circuit import Circuit
from .engine.Store import Components
from .engine.Gates import ElementError, ParameterRequired
from .engine.Serializer import LoadError
from .control.Event_Manager import Event
from .control.Project import Project, ProjectError

__all__ = [
    "Circuit", "Components", "ElementError", "ParameterRequired", "LoadError",
    "Event", "Project", "ProjectError",
]
