from __future__ import annotations
import logging

from ..core.QtCore import Qt, QObject, QTimer, Signal
from ..engine import Const
from ..engine.Circuit import Circuit
from ..engine.Gates import LogicElement

logger = logging.getLogger(__name__)


class SimulationRunner(QObject):
	"""Drives Circuit.step() from a QTimer. The circuit itself never owns a
	timer; stopping the runner is the only way a simulation gets cancelled."""
	stepped = Signal(int)
	runningChanged = Signal(bool)
	pausedChanged = Signal(bool)

	def __init__(self, circuit: Circuit, tps: int = Const.DEFAULT_TPS, parent: QObject | None = None):
		super().__init__(parent)
		self.circuit = circuit
		self._tps = max(1, tps)
		self._running = False
		self._paused = False

		self.timer = QTimer(self)
		self.timer.setTimerType(Qt.TimerType.PreciseTimer)
		self.timer.timeout.connect(self._step)


	###======= STATE =======###
	def isRunning(self) -> bool: return self._running
	def isPaused(self) -> bool: return self._paused

	def tps(self) -> int: return self._tps
	def setTps(self, tps: int):
		self._tps = max(1, int(tps))
		# change the speed live
		if self._running and not self._paused:
			self.timer.start(self.interval())

	def interval(self) -> int:
		return max(1, round(1000 / self._tps))

	def _setRunning(self, state: bool):
		if state == self._running: return
		self._running = state
		logger.debug("Simulation %s at tick %d", "started" if state else "stopped", self.circuit.tick)
		self.runningChanged.emit(state)

	def _setPaused(self, state: bool):
		if state == self._paused: return
		self._paused = state
		self.pausedChanged.emit(state)


	###======= CONTROLS =======###
	def start(self):
		# leaves edit mode and starts stepping
		if self._running:
			self.resume()
			return
		self._setRunning(True)
		self._setPaused(False)
		self.timer.start(self.interval())

	def stop(self):
		# back to edit mode, every element returns to its starting power
		self._setPaused(False)
		if not self._running: return
		self.timer.stop()
		self._setRunning(False)
		self.circuit.reset()

	def pause(self):
		if not self._running or self._paused: return
		self.timer.stop()
		self._setPaused(True)

	def resume(self):
		if not self._running or not self._paused: return
		self._setPaused(False)
		self.timer.start(self.interval())

	def stepOnce(self):
		# single step, leaves the simulation paused
		if not self._running:
			self._setRunning(True)
			self._setPaused(True)
		self.pause()
		self._step()

	def _step(self):
		self.circuit.step()
		self.stepped.emit(self.circuit.tick)


	###======= CLICKS =======###
	# only reach the circuit while running, clicks in edit mode are edits
	def clickStart(self, elem: LogicElement) -> bool:
		if not self._running: return False
		self.circuit.element_click_start(elem)
		return True

	def clickEnd(self, elem: LogicElement) -> bool:
		if not self._running: return False
		self.circuit.element_click_end(elem)
		return True

	def clickFull(self, elem: LogicElement) -> bool:
		if not self._running: return False
		self.circuit.element_click_full(elem)
		return True
