import unittest

from ticksim.engine.Circuit import Circuit
from ticksim.control.Control import Add, Connect, Delete, Editor
from ticksim.control.Event_Manager import Event


class TestTimeTravel(unittest.TestCase):
    def setUp(self):
        """Fresh circuit with its own history for each test."""
        self.circuit = Circuit()
        self.em = Event(self.circuit)

    def add(self, tag="OrGate", data=None):
        elem = self.circuit.create_and_add_element(tag, data)
        self.em.record()
        return elem

    # ==========================================
    # 1. CORE MECHANICS & EDGE CASES
    # ==========================================

    def test_empty_undo_redo(self):
        """Undoing or redoing an empty history does nothing."""
        self.assertFalse(self.em.can_undo())
        self.assertFalse(self.em.undo())
        self.assertFalse(self.em.redo())
        self.assertEqual(len(self.em), 1)

    def test_undo_redo(self):
        self.add()
        self.add("Switch", {"beginPowered": True})
        self.assertEqual(self.em.available_undos(), 2)

        self.assertTrue(self.em.undo())
        self.assertEqual(len(self.circuit), 1)
        self.assertTrue(self.em.undo())
        self.assertEqual(len(self.circuit), 0)
        self.assertFalse(self.em.undo())

        self.assertTrue(self.em.redo())
        self.assertTrue(self.em.redo())
        self.assertEqual([e.tag for e in self.circuit], ["OrGate", "Switch"])
        self.assertTrue(list(self.circuit)[1].begin_powered)

    def test_redo_is_byte_identical(self):
        """Undo then redo restores exactly what was serialized before."""
        a = self.add("Switch")
        b = self.add("Delay", {"delay": 3, "x": 10.5, "y": -2})
        c = self.add("Label", {"text": "hello world"})
        self.circuit.connect_elements(a, b)
        self.em.record()
        before = self.em.snapshot()

        self.em.undo()
        self.assertNotEqual(self.em.snapshot(), before)
        self.em.redo()
        self.assertEqual(self.em.snapshot(), before)
        self.assertIsNot(list(self.circuit)[2], c)

    def test_redo_stack_invalidation(self):
        """Recording after an undo drops the redo history."""
        self.add()
        self.add("AndGate")
        self.em.undo()
        self.assertTrue(self.em.can_redo())

        self.add("XorGate")
        self.assertFalse(self.em.can_redo())
        self.assertEqual(self.em.available_redos(), 0)
        self.assertEqual([e.tag for e in self.circuit], ["OrGate", "XorGate"])

    def test_limit_enforcement(self):
        """Never more than `limit` undos, and the history stays bounded."""
        self.em = Event(self.circuit, limit=5)
        for _ in range(12):
            self.add("NotGate")

        self.assertEqual(self.em.available_undos(), 5)
        self.assertLessEqual(len(self.em), 6)
        for _ in range(5):
            self.assertTrue(self.em.undo())
        self.assertFalse(self.em.undo())
        self.assertEqual(len(self.circuit), 7)

    def test_restore_current_is_noop(self):
        self.add()
        self.assertFalse(self.em.restore(self.em.current))
        self.assertFalse(self.em.restore(99))

    def test_clear(self):
        self.add()
        self.add()
        self.em.clear()
        self.assertFalse(self.em.can_undo())
        self.assertEqual(len(self.circuit), 2)

    # ==========================================
    # 2. SIMULATION LOCK
    # ==========================================

    def test_disabled_while_running(self):
        """History is frozen once the simulation has started."""
        self.add()
        self.add()
        self.circuit.step()
        self.assertFalse(self.em.record())
        self.assertFalse(self.em.can_undo())
        self.assertFalse(self.em.undo())
        self.assertEqual(len(self.circuit), 2)

        self.circuit.reset()
        self.assertTrue(self.em.undo())

    def test_undo_stops_simulation_state(self):
        self.add("Switch")
        self.em.undo()
        self.assertEqual(self.circuit.tick, 0)
        self.assertEqual(len(self.circuit.scheduled), 0)

    # ==========================================
    # 3. EDITOR COMMANDS
    # ==========================================

    def test_editor_records_only_changes(self):
        editor = Editor(self.circuit)
        add = Add(self.circuit, "OrGate")
        self.assertTrue(editor.do(add))
        # connecting an element to itself changes nothing
        self.assertFalse(editor.do(Connect(self.circuit, add.element, add.element)))
        self.assertEqual(editor.journal.available_undos(), 1)

        self.assertTrue(editor.do(Delete(self.circuit, [add.element])))
        self.assertTrue(editor.undo())
        self.assertEqual(len(self.circuit), 1)
        self.assertTrue(editor.redo())
        self.assertEqual(len(self.circuit), 0)

    def test_editor_refuses_while_running(self):
        editor = Editor(self.circuit)
        editor.do(Add(self.circuit, "OrGate"))
        self.circuit.step()
        self.assertFalse(editor.do(Add(self.circuit, "AndGate")))
        self.assertEqual(len(self.circuit), 1)


if __name__ == "__main__":
    unittest.main()
