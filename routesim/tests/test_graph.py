import unittest

from routesim.graph import Graph, Node, Position


class TestNodeIds(unittest.TestCase):
    def test_ids_follow_per_type_counters(self):
        g = Graph()
        self.assertEqual(g.add_node("router"), "R1")
        self.assertEqual(g.add_node("router"), "R2")
        self.assertEqual(g.add_node("endpoint"), "P1")
        self.assertEqual(g.add_node("switch"), "S1")
        self.assertEqual(g.get("R2").name, "ROUTER2")
        self.assertEqual(g.get("P1").name, "PC1")
        self.assertEqual(g.get("S1").name, "SWITCH1")

    def test_ids_never_reused_after_delete(self):
        g = Graph()
        g.add_node("router")
        r2 = g.add_node("router")
        g.remove_node(r2)
        self.assertEqual(g.add_node("router"), "R3")
        self.assertEqual(g.counters()["router"], 3)

    def test_generated_id_skips_loaded_ids(self):
        g = Graph()
        g.load({"R2": Node(uid="R2", role="router", name="ROUTER2")}, {}, {"router": 1})
        self.assertEqual(g.add_node("router"), "R3")
        self.assertEqual(g.get("R3").name, "ROUTER3")
        self.assertEqual(g.counters()["router"], 3)

    def test_role_aliases(self):
        g = Graph()
        self.assertEqual(g.add_node("pc"), "P1")
        self.assertEqual(g.add_node("HOST"), "P2")
        self.assertEqual(g.get("P2").role, "endpoint")
        # unknown roles become routers
        self.assertEqual(g.add_node("firewall"), "R1")

    def test_move_node(self):
        g = Graph()
        r1 = g.add_node("router", Position(1, 2))
        self.assertTrue(g.move_node(r1, Position(5, 6)))
        self.assertEqual(g.get(r1).position, Position(5, 6))
        self.assertFalse(g.move_node("R9", Position(0, 0)))


class TestLinks(unittest.TestCase):
    def setUp(self):
        self.g = Graph()
        for _ in range(3):
            self.g.add_node("router")

    def test_create_then_update_in_place(self):
        res = self.g.add_or_update_link("R1", "R2", 3)
        self.assertEqual(res.status, "created")
        res = self.g.add_or_update_link("R2", "R1", 7)
        self.assertEqual(res.status, "updated")
        self.assertEqual(len(self.g.links), 1)
        self.assertEqual(self.g.link_between("R1", "R2").weight, 7)

        res = self.g.add_or_update_link("R1", "R2", 7)
        self.assertEqual(res.status, "unchanged")
        self.assertFalse(res.changed)
        self.assertTrue(self.g.add_or_update_link("R1", "R2", 2).changed)
        self.assertFalse(self.g.add_or_update_link("R1", "R2", 0).changed)

    def test_invalid_links_rejected(self):
        for a, b, w in (
            ("R1", "R2", 0),
            ("R1", "R2", -4),
            ("R1", "R2", 2.5),
            ("R1", "R2", True),
            ("R1", "R2", "3"),
            ("R1", "R9", 1),
            ("R1", "R1", 1),
        ):
            res = self.g.add_or_update_link(a, b, w)
            self.assertEqual(res.status, "rejected", (a, b, w))
        self.assertEqual(self.g.links, {})

    def test_integral_float_weight_accepted(self):
        res = self.g.add_or_update_link("R1", "R2", 2.0)
        self.assertEqual(res.status, "created")
        self.assertEqual(res.link.weight, 2)
        self.assertIsInstance(res.link.weight, int)

    def test_remove_link(self):
        self.g.add_or_update_link("R1", "R2", 1)
        self.assertIsNotNone(self.g.remove_link("R2", "R1"))
        self.assertIsNone(self.g.remove_link("R2", "R1"))

    def test_remove_node_cascades(self):
        self.g.add_or_update_link("R1", "R2", 1)
        self.g.add_or_update_link("R2", "R3", 1)
        self.g.add_or_update_link("R1", "R3", 1)
        removed = self.g.remove_node("R2")
        self.assertEqual(len(removed), 2)
        self.assertEqual(list(self.g.links), [("R1", "R3")])
        self.assertNotIn("R2", self.g.adjacency())
        self.assertEqual(self.g.remove_node("R2"), [])

    def test_adjacency_is_symmetric(self):
        self.g.add_or_update_link("R1", "R2", 4)
        self.g.add_or_update_link("R3", "R1", 2)
        adj = self.g.adjacency()
        self.assertEqual(adj["R1"], [("R2", 4), ("R3", 2)])
        self.assertEqual(adj["R2"], [("R1", 4)])
        self.assertEqual(adj["R3"], [("R1", 2)])
        self.assertEqual(self.g.neighbors("R3"), [("R1", 2)])


if __name__ == "__main__":
    unittest.main()
