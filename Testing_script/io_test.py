import io
import json
import os
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout

from ticksim.core.QtCore import QPointF
from ticksim.engine import Const
from ticksim.engine.Circuit import Circuit
from ticksim.engine.Const import Edge
from ticksim.control.Project import Project, ProjectError
from ticksim.__main__ import main, timeline


def sample_circuit():
    circuit = Circuit()
    switch = circuit.create_and_add_element("Switch", {"x": -40, "y": 0, "beginPowered": True})
    gate = circuit.create_and_add_element("NotGate", {"x": 0, "y": 0})
    delay = circuit.create_and_add_element("Delay", {"x": 40, "y": 0, "delay": 3})
    mono = circuit.create_and_add_element("Monostable", {"x": 80, "y": 0, "edge": "falling"})
    clock = circuit.create_and_add_element("Clock", {"x": 120, "y": 0, "delay": 0})
    bulb = circuit.create_and_add_element("LightBulb", {"x": 160, "y": 0})
    circuit.create_and_add_element("Label", {"x": 0, "y": 80, "text": "a b&c"})
    circuit.connect_elements(switch, gate)
    circuit.connect_elements(gate, delay)
    circuit.connect_elements(delay, mono)
    circuit.connect_elements(mono, delay)
    circuit.connect_elements(clock, bulb)
    circuit.connect_elements(mono, bulb)
    return circuit


class TestSerializer(unittest.TestCase):
    def test_round_trip(self):
        """Saving a loaded circuit gives back the same records."""
        circuit = sample_circuit()
        data = circuit.serialize()
        loaded = Circuit(json.loads(json.dumps(data))["elements"])
        self.assertEqual(loaded.serialize(), data)
        self.assertEqual([e.tag for e in loaded], [e.tag for e in circuit])

    def test_record_fields(self):
        records = sample_circuit().serialize()["elements"]
        switch, gate, delay, mono, clock, bulb, label = records
        self.assertEqual(switch, {"elemType": "Switch", "id": 0, "x": -40, "y": 0,
                                  "beginPowered": True, "outputs": [1]})
        # default power is not written
        self.assertNotIn("beginPowered", gate)
        self.assertEqual(delay["delay"], 3)
        self.assertEqual(delay["inputs"], [1, 3])
        self.assertEqual(mono["edge"], "falling")
        self.assertEqual(clock["delay"], 0)
        self.assertEqual(bulb["inputs"], [4, 3])
        self.assertNotIn("outputs", bulb)
        self.assertEqual(label["text"], "a%20b%26c")
        self.assertNotIn("inputs", label)

    def test_label_text_decoded(self):
        records = sample_circuit().serialize()["elements"]
        label = list(Circuit(records))[-1]
        self.assertEqual(label.text, "a b&c")

    def test_sorted_by_id(self):
        records = [
            {"elemType": "LightBulb", "id": 2, "x": 0, "y": 0},
            {"elemType": "Switch", "id": 0, "x": 0, "y": 0, "outputs": [2]},
            {"elemType": "OrGate", "id": 1, "x": 0, "y": 0},
        ]
        circuit = Circuit(records)
        self.assertEqual([e.tag for e in circuit], ["Switch", "OrGate", "LightBulb"])
        switch, _, bulb = circuit
        # the reverse half is filled in
        self.assertIn(switch, bulb.inputs)

    def test_bad_references_dropped(self):
        records = [
            {"elemType": "OrGate", "id": 0, "x": 0, "y": 0, "outputs": [99, 1, 0, "1"]},
            {"elemType": "LightBulb", "id": 1, "x": 0, "y": 0, "outputs": [0]},
            {"elemType": "Button", "id": 2, "x": 0, "y": 0, "inputs": [0]},
        ]
        circuit = Circuit(records)
        gate, bulb, button = circuit
        self.assertEqual(list(gate.outputs), [bulb])
        self.assertEqual(list(gate.inputs), [])
        self.assertEqual(list(bulb.outputs), [])
        self.assertEqual(list(button.inputs), [])

    def test_records_without_id_skipped(self):
        circuit = Circuit([
            {"elemType": "OrGate", "x": 0, "y": 0},
            {"elemType": "AndGate", "id": 0, "x": 0, "y": 0},
        ])
        self.assertEqual([e.tag for e in circuit], ["AndGate"])

    def test_failure_is_atomic(self):
        circuit = sample_circuit()
        before = list(circuit)
        for records in (
            None,
            {"elemType": "OrGate"},
            [{"elemType": "OrGate", "id": 0, "x": 0, "y": 0}, {"elemType": "FooGate", "id": 1}],
            [{"elemType": "Delay", "id": 0, "x": 0, "y": 0}],
            [{"elemType": "OrGate", "id": 0, "x": "far", "y": 0}],
            ["OrGate"],
        ):
            with self.subTest(records=records):
                self.assertFalse(circuit.load_elements_from_data(records))
                self.assertEqual(list(circuit), before)

    def test_both_edge_saved_as_dual(self):
        circuit = Circuit([{"elemType": "Monostable", "id": 0, "x": 0, "y": 0, "edge": "both"}])
        mono = next(iter(circuit))
        self.assertIs(mono.edge, Edge.DUAL)
        self.assertEqual(circuit.serialize()["elements"][0]["edge"], "dual")

    def test_loading_stops_simulation(self):
        circuit = sample_circuit()
        circuit.step()
        self.assertTrue(circuit.load_elements_from_data(circuit.serialize()["elements"]))
        self.assertEqual(circuit.tick, 0)


class TestProject(unittest.TestCase):
    def test_round_trip(self):
        project = Project(sample_circuit(), QPointF(5, -3), 1.5, 20)
        loaded = Project.loads(project.dumps())
        self.assertEqual(loaded.offset, QPointF(5, -3))
        self.assertEqual(loaded.zoom, 1.5)
        self.assertEqual(loaded.tps, 20)
        self.assertEqual(loaded.circuit.serialize(), project.circuit.serialize())

    def test_header(self):
        data = json.loads(Project().dumps())
        self.assertEqual(data["fileFormatVersion"], Const.FILE_FORMAT_VERSION)
        self.assertEqual(data["elements"], [])
        self.assertEqual(data["offset"], {"x": 0, "y": 0})

    def test_view_defaults(self):
        project = Project.loads(json.dumps({"fileFormatVersion": 2, "elements": []}))
        self.assertEqual(project.offset, QPointF())
        self.assertEqual(project.zoom, 1.0)
        self.assertEqual(project.tps, Const.DEFAULT_TPS)

    def test_rejected(self):
        for text in (
            "not json",
            "[]",
            json.dumps({"fileFormatVersion": 1, "elements": []}),
            json.dumps({"elements": []}),
            json.dumps({"fileFormatVersion": 2, "elements": [{"elemType": "FooGate", "id": 0}]}),
            json.dumps({"fileFormatVersion": 2}),
        ):
            with self.subTest(text=text):
                with self.assertRaises(ProjectError):
                    Project.loads(text)

    def test_save_load(self):
        with tempfile.TemporaryDirectory() as folder:
            location = os.path.join(folder, Const.DEFAULT_FILE_NAME)
            Project(sample_circuit(), tps=4).save(location)
            loaded = Project.load(location)
            self.assertEqual(loaded.tps, 4)
            self.assertEqual(len(loaded.circuit), 7)

            with self.assertRaises(ProjectError):
                Project.load(os.path.join(folder, "missing.json"))


class TestCommandLine(unittest.TestCase):
    def setUp(self):
        self.folder = tempfile.TemporaryDirectory()
        self.location = os.path.join(self.folder.name, "chain.json")
        circuit = Circuit()
        switch = circuit.create_and_add_element("Switch")
        gate = circuit.create_and_add_element("NotGate")
        bulb = circuit.create_and_add_element("LightBulb")
        circuit.connect_elements(switch, gate)
        circuit.connect_elements(gate, bulb)
        Project(circuit).save(self.location)

    def tearDown(self):
        self.folder.cleanup()

    def test_timeline(self):
        table = timeline(Project.load(self.location), 3, toggles=[0])
        rows = table.split("\n")[3:-1]
        self.assertEqual(len(rows), 3)
        columns = [[cell.strip() for cell in row.split("|")] for row in rows]
        self.assertEqual([c[0] for c in columns], ["1", "2", "3"])
        self.assertEqual([c[1] for c in columns], ["1", "1", "1"])
        self.assertEqual([c[2] for c in columns], ["0", "0", "0"])
        self.assertEqual([c[3] for c in columns], ["1", "0", "0"])

    def test_unknown_id(self):
        with self.assertRaises(LookupError):
            timeline(Project.load(self.location), 3, toggles=[9])

    def test_main(self):
        out = io.StringIO()
        with redirect_stdout(out):
            self.assertEqual(main(["info", self.location]), 0)
        self.assertIn("NotGate", out.getvalue())

        out = io.StringIO()
        with redirect_stdout(out):
            self.assertEqual(main(["run", self.location, "--ticks", "2", "--toggle", "0"]), 0)
        self.assertIn("0:Switch", out.getvalue())

    def test_main_failure(self):
        err = io.StringIO()
        with redirect_stderr(err):
            self.assertEqual(main(["info", os.path.join(self.folder.name, "missing.json")]), 1)
        self.assertIn("Failed to load", err.getvalue())

        err = io.StringIO()
        with redirect_stderr(err):
            self.assertEqual(main(["run", self.location, "--toggle", "9"]), 1)
        self.assertIn("No element with id 9", err.getvalue())
        self.assertNotIn("Failed to load", err.getvalue())


if __name__ == "__main__":
    unittest.main()
