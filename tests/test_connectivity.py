"""Tests for the connectivity engine: pin graph, islands, and reports."""

from __future__ import annotations

import unittest

from patchkit.connectivity import (
    analyze_connectivity, build_pin_graph, count_islands,
    find_unconnected_pins, find_unconnected_pin_slots, find_floating_nets,
    connectivity_issues, format_connectivity_report, report_to_dict,
)
from patchkit.patch import Component, Endpoint, Net, create_empty_patch
from tests.blink_fixture import make_blink_patch, make_r1_d1_patch


def _slots(pins):
    return sorted(f"{p.component_name}.{p.pin_name}" for p in pins)


class TestPinGraph(unittest.TestCase):

    def test_one_node_per_pin_slot(self):
        graph = build_pin_graph(make_blink_patch())
        self.assertEqual(len(graph.nodes), 6)
        self.assertIn("resistor1_pin_1", graph.adjacency)
        labels = {n.label for n in graph.nodes}
        self.assertIn("R1.pin_1", labels)

    def test_nets_are_chained_pairwise(self):
        patch = create_empty_patch("bus")
        patch.components = [
            Component(id=c, name=c, type="x", properties={"pin_1": "1"})
            for c in ("A", "B", "C", "D")
        ]
        patch.nets = [Net(id="bus", name="BUS", endpoints=[
            Endpoint(c, "pin_1") for c in ("A", "B", "C", "D")])]
        graph = build_pin_graph(patch)
        self.assertEqual(len(graph.edges), 3)
        self.assertEqual([e.id for e in graph.edges], ["bus_0", "bus_1", "bus_2"])
        self.assertEqual(graph.adjacency["A_pin_1"], ["B_pin_1"])
        self.assertEqual(sorted(graph.adjacency["B_pin_1"]), ["A_pin_1", "C_pin_1"])
        self.assertEqual(count_islands(graph), 1)

    def test_undeclared_middle_endpoint_breaks_the_chain(self):
        # A chain through a pin that is not a declared slot does not join
        # its neighbours, where a clique would have.
        patch = create_empty_patch("gap")
        patch.components = [
            Component(id="A", name="A", type="x", properties={"pin_1": "1"}),
            Component(id="B", name="B", type="x", properties={"pin_1": "1"}),
        ]
        patch.nets = [Net(id="n", name="N", endpoints=[
            Endpoint("A", "pin_1"), Endpoint("X", "pin_9"), Endpoint("B", "pin_1")])]
        graph = build_pin_graph(patch)
        self.assertEqual(len(graph.edges), 2)
        self.assertNotIn("X_pin_9", graph.adjacency)
        self.assertEqual(count_islands(graph), 2)

    def test_empty_patch_has_no_islands(self):
        self.assertEqual(count_islands(build_pin_graph(create_empty_patch("x"))), 0)


class TestAnalyzeConnectivity(unittest.TestCase):

    def test_r1_d1_scenario(self):
        report = analyze_connectivity(make_r1_d1_patch())
        self.assertEqual(report.component_count, 2)
        self.assertEqual(report.net_count, 1)
        self.assertEqual(_slots(report.unconnected_pin_slots), ["D1.pin_cathode", "R1.pin_1"])
        self.assertEqual(report.island_count, 3)
        self.assertEqual(report.floating_nets, [])

    def test_coarse_and_fine_checks_diverge(self):
        # Both components are referenced by some net, so the
        # component-level check is clean while two slots stay open.
        patch = make_r1_d1_patch()
        self.assertEqual(find_unconnected_pins(patch), [])
        self.assertEqual(len(find_unconnected_pin_slots(patch)), 2)
        self.assertTrue(analyze_connectivity(patch).is_fully_connected)

    def test_unreferenced_component_reported_once(self):
        patch = make_blink_patch()
        patch.components.append(Component(
            id="cap1", name="C1", type="capacitor",
            properties={"pin_1": "1", "pin_2": "2"}))
        pins = find_unconnected_pins(patch)
        self.assertEqual(len(pins), 1)
        self.assertEqual((pins[0].component_id, pins[0].pin_name), ("cap1", "unspecified"))
        self.assertEqual(_slots(find_unconnected_pin_slots(patch)), ["C1.pin_1", "C1.pin_2"])
        self.assertFalse(analyze_connectivity(patch).is_fully_connected)

    def test_floating_nets(self):
        patch = make_blink_patch()
        patch.nets.append(Net(id="n_empty", name=None))
        patch.nets.append(Net(id="n_one", name="TP", endpoints=[Endpoint("led1", "pin_anode")]))
        floating = find_floating_nets(patch)
        self.assertEqual([(f.net_id, f.connection_count) for f in floating],
                         [("n_empty", 0), ("n_one", 1)])
        self.assertFalse(analyze_connectivity(patch).is_fully_connected)

    def test_single_endpoint_net_wires_its_slot(self):
        patch = make_r1_d1_patch()
        patch.nets.append(Net(id="tp", name="TP", endpoints=[Endpoint("R1", "pin_1")]))
        self.assertEqual(_slots(find_unconnected_pin_slots(patch)), ["D1.pin_cathode"])

    def test_islands_do_not_affect_full_connection(self):
        report = analyze_connectivity(make_blink_patch())
        self.assertEqual(report.island_count, 3)
        self.assertTrue(report.is_fully_connected)

    def test_input_is_not_mutated(self):
        patch = make_blink_patch()
        before = repr(patch)
        analyze_connectivity(patch)
        self.assertEqual(repr(patch), before)


class TestConnectivityReport(unittest.TestCase):

    def test_issues_for_blink(self):
        issues = connectivity_issues(analyze_connectivity(make_blink_patch()))
        self.assertEqual(issues, ["Warning: Circuit has 3 isolated islands"])

    def test_issues_list_every_problem(self):
        patch = make_blink_patch()
        patch.components.append(Component(id="cap1", name="C1", type="capacitor"))
        patch.nets.append(Net(id="n_one", name="TP", endpoints=[Endpoint("led1", "pin_anode")]))
        issues = connectivity_issues(analyze_connectivity(patch))
        self.assertIn("Unconnected pin: C1.unspecified", issues)
        self.assertIn('Floating net: "TP" (1 connection(s))', issues)

    def test_text_report_clean(self):
        text = format_connectivity_report(analyze_connectivity(make_blink_patch()))
        self.assertIn("Connectivity Analysis Report", text)
        self.assertIn("FULLY CONNECTED", text)
        self.assertIn("All components are connected.", text)

    def test_text_report_with_issues(self):
        patch = make_r1_d1_patch()
        patch.nets.append(Net(id="n_one", name="TP", endpoints=[Endpoint("R1", "pin_1")]))
        text = format_connectivity_report(analyze_connectivity(patch))
        self.assertIn("ISSUES FOUND", text)
        self.assertIn("D1.pin_cathode", text)
        self.assertIn('Net "TP" has 1 connection(s)', text)
        self.assertNotIn("All components are connected.", text)

    def test_report_to_dict(self):
        d = report_to_dict(analyze_connectivity(make_r1_d1_patch()))
        self.assertEqual(d["component_count"], 2)
        self.assertEqual(d["island_count"], 3)
        self.assertTrue(d["is_fully_connected"])
        self.assertEqual(len(d["unconnected_pin_slots"]), 2)
        self.assertEqual(d["issues"], ["Warning: Circuit has 3 isolated islands"])


if __name__ == "__main__":
    unittest.main()
