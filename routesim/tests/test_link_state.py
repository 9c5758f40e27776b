import math
import random
import unittest

from routesim.distance_vector import compute_routing_tables
from routesim.graph import Graph
from routesim.link_state import LinkStateEngine, LinkStateRoute, compute_link_state_tables, compute_shortest_paths


class TestDijkstra(unittest.TestCase):
    def test_line_paths(self):
        g = Graph()
        for _ in range(3):
            g.add_node("router")
        g.add_or_update_link("R1", "R2", 1)
        g.add_or_update_link("R2", "R3", 4)

        table = compute_shortest_paths(g, "R1")
        self.assertEqual(table["R3"], LinkStateRoute(next_hop="R2", cost=5, path=("R1", "R2", "R3")))
        self.assertEqual(table["R2"].path, ("R1", "R2"))
        self.assertEqual(table["R1"], LinkStateRoute(next_hop="R1", cost=0, path=("R1",)))

    def test_non_routers_are_transit_vertices(self):
        g = Graph()
        g.add_node("router")
        g.add_node("router")
        s1 = g.add_node("switch")
        p1 = g.add_node("endpoint")
        g.add_or_update_link("R1", s1, 2)
        g.add_or_update_link(s1, "R2", 3)
        g.add_or_update_link(s1, p1, 1)

        tables = compute_link_state_tables(g)
        self.assertEqual(set(tables), {"R1", "R2"})
        self.assertEqual(tables["R1"]["R2"].path, ("R1", s1, "R2"))
        self.assertEqual(tables["R1"]["R2"].next_hop, s1)
        self.assertEqual(tables["R1"]["R2"].cost, 5)
        self.assertEqual(tables["R2"][p1].cost, 4)

    def test_unreachable_omitted(self):
        g = Graph()
        for _ in range(3):
            g.add_node("router")
        g.add_or_update_link("R1", "R2", 1)
        table = compute_shortest_paths(g, "R1")
        self.assertNotIn("R3", table)
        self.assertEqual(compute_shortest_paths(g, "R9"), {})

    def test_ties_follow_insertion_order(self):
        g = Graph()
        for _ in range(4):
            g.add_node("router")
        g.add_or_update_link("R1", "R2", 1)
        g.add_or_update_link("R1", "R3", 1)
        g.add_or_update_link("R2", "R4", 1)
        g.add_or_update_link("R3", "R4", 1)
        self.assertEqual(compute_shortest_paths(g, "R1")["R4"].path, ("R1", "R2", "R4"))


class TestProtocolsAgree(unittest.TestCase):
    def test_distance_vector_costs_match_dijkstra(self):
        rng = random.Random(7)
        for _trial in range(25):
            g = Graph()
            n = rng.randint(2, 9)
            for _ in range(n):
                g.add_node("router")
            ids = g.routers()
            for _ in range(rng.randint(0, n * 2)):
                a, b = rng.sample(ids, 2)
                g.add_or_update_link(a, b, rng.randint(1, 9))

            dv_tables, vectors = compute_routing_tables(g)
            ls_tables = compute_link_state_tables(g)
            for src in ids:
                for dst in ids:
                    ls = ls_tables[src].get(dst)
                    if ls is None:
                        self.assertTrue(math.isinf(vectors[src][dst]))
                        self.assertNotIn(dst, dv_tables[src])
                    else:
                        self.assertEqual(dv_tables[src][dst].cost, ls.cost, (src, dst))
                        self.assertEqual(vectors[src][dst], ls.cost)


class TestLinkStateEngine(unittest.TestCase):
    def test_sequence_numbers_bump_only_on_change(self):
        g = Graph()
        for _ in range(3):
            g.add_node("router")
        g.add_or_update_link("R1", "R2", 1)

        clock = iter([10.0, 20.0, 30.0])
        lse = LinkStateEngine(clock=lambda: next(clock))
        states, _ = lse.update_link_states(g)
        self.assertEqual(states["R1"].sequence_number, 1)
        self.assertEqual(states["R1"].neighbors, {"R2": 1})
        self.assertEqual(states["R3"].neighbors, {})
        self.assertEqual(states["R1"].timestamp, 10.0)

        g.add_or_update_link("R2", "R3", 2)
        states, tables = lse.update_link_states(g)
        self.assertEqual(states["R1"].sequence_number, 1)
        self.assertEqual(states["R1"].timestamp, 10.0)
        self.assertEqual(states["R2"].sequence_number, 2)
        self.assertEqual(states["R3"].sequence_number, 2)
        self.assertEqual(states["R3"].timestamp, 20.0)
        self.assertEqual(tables["R1"]["R3"].cost, 3)

    def test_removed_router_is_purged(self):
        g = Graph()
        g.add_node("router")
        g.add_node("router")
        g.add_or_update_link("R1", "R2", 1)
        lse = LinkStateEngine(clock=lambda: 0.0)
        lse.update_link_states(g)
        g.remove_node("R2")
        states, tables = lse.update_link_states(g)
        self.assertNotIn("R2", states)
        self.assertNotIn("R2", tables)
        self.assertEqual(states["R1"].neighbors, {})
        self.assertEqual(states["R1"].sequence_number, 2)


if __name__ == "__main__":
    unittest.main()
