"""
TESTS FOR THE TERM ALGEBRA

Validates:
1. Typed construction (composition checks, tensor totality)
2. Category laws up to structural equality
3. Copy/discard laws and what structural equality must NOT identify
4. Wiring helpers (copies, permutation, rewire)
5. Inspection helpers
"""

import unittest
import sys
import os

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'src')))

from causal_theory.errors import TypeMismatch
from causal_theory.term import (
    Compose, Delete, Duplicate, Generator, GeneratorRef, Identity, Ob, Swap, Tensor,
    compose, compose_all, copies, delete, duplicate, flatten_compose, flatten_tensor,
    generators_of, identity, permutation, rewire, structurally_equal, swap, tensor,
    tensor_all, term_size, codomain_of, domain_of,
)
from causal_theory.wiring import to_wiring


A, B, C = Ob("A"), Ob("B"), Ob("C")

F = GeneratorRef(Generator("f", (A,), (B,)))
G = GeneratorRef(Generator("g", (B,), (C,)))
H = GeneratorRef(Generator("h", (C,), (A,)))
SOURCE = GeneratorRef(Generator("source", (), (A,)))


class TestConstruction(unittest.TestCase):
    """Test typed construction of terms"""

    def test_compose_requires_matching_types(self):
        """compose(f, f) is rejected: cod(f) = B ≠ A = dom(f)"""
        with self.assertRaises(TypeMismatch) as ctx:
            compose(F, F)
        self.assertEqual(ctx.exception.expected, (A,))
        self.assertEqual(ctx.exception.actual, (B,))

    def test_compose_types(self):
        fg = compose(F, G)
        self.assertEqual(domain_of(fg), (A,))
        self.assertEqual(codomain_of(fg), (C,))

    def test_tensor_is_total(self):
        """Tensor concatenates domains and codomains"""
        fg = tensor(F, G)
        self.assertEqual(fg.dom, (A, B))
        self.assertEqual(fg.cod, (B, C))

    def test_duplicate_and_delete_types(self):
        self.assertEqual(duplicate(A).dom, (A,))
        self.assertEqual(duplicate(A).cod, (A, A))
        self.assertEqual(delete(A).dom, (A,))
        self.assertEqual(delete(A).cod, ())

    def test_swap_types(self):
        s = swap([A, B], [C])
        self.assertEqual(s.dom, (A, B, C))
        self.assertEqual(s.cod, (C, A, B))

    def test_objects_must_be_ob(self):
        with self.assertRaises(TypeError):
            identity("A")
        with self.assertRaises(TypeError):
            identity(["A"])
        with self.assertRaises(TypeError):
            duplicate("A")

    def test_terms_are_immutable_values(self):
        """Equal trees compare and hash equal, and can be shared"""
        shared = compose(F, G)
        self.assertEqual(tensor(shared, shared), tensor(compose(F, G), compose(F, G)))
        self.assertEqual(len({compose(F, G), compose(F, G)}), 1)
        with self.assertRaises(Exception):
            shared.first = G

    def test_rendering(self):
        self.assertEqual(str(compose(F, G)), "(f ; g)")
        self.assertEqual(str(tensor(F, identity([]))), "(f ⊗ id[I])")
        self.assertEqual(F.type_signature, "A → B")


class TestCategoryLaws(unittest.TestCase):
    """Test category and monoidal laws up to structural equality"""

    def test_left_identity(self):
        self.assertTrue(structurally_equal(compose(identity(F.dom), F), F))

    def test_right_identity(self):
        self.assertTrue(structurally_equal(compose(F, identity(F.cod)), F))

    def test_compose_associativity(self):
        left = compose(compose(F, G), H)
        right = compose(F, compose(G, H))
        self.assertNotEqual(left, right)
        self.assertTrue(structurally_equal(left, right))

    def test_tensor_associativity(self):
        left = tensor(tensor(F, G), H)
        right = tensor(F, tensor(G, H))
        self.assertTrue(structurally_equal(left, right))

    def test_tensor_unit(self):
        self.assertTrue(structurally_equal(tensor(identity([]), F), F))
        self.assertTrue(structurally_equal(tensor(F, identity([])), F))

    def test_interchange(self):
        """(f1 ⊗ f2) ; (g1 ⊗ g2) = (f1 ; g1) ⊗ (f2 ; g2)"""
        left = compose(tensor(F, G), tensor(G, H))
        right = tensor(compose(F, G), compose(G, H))
        self.assertTrue(structurally_equal(left, right))

    def test_swap_naturality(self):
        left = compose(tensor(F, G), swap([B], [C]))
        right = compose(swap([A], [B]), tensor(G, F))
        self.assertTrue(structurally_equal(left, right))

    def test_swap_involution(self):
        twice = compose(swap([A], [B]), swap([B], [A]))
        self.assertTrue(structurally_equal(twice, identity([A, B])))

    def test_different_generators_differ(self):
        other = GeneratorRef(Generator("f2", (A,), (B,)))
        self.assertFalse(structurally_equal(F, other))

    def test_different_types_differ(self):
        self.assertFalse(structurally_equal(identity([A]), identity([B])))


class TestCopyDiscardLaws(unittest.TestCase):
    """Test duplication/deletion laws"""

    def test_counit_left(self):
        """Δ ; (◇ ⊗ id) = id"""
        term = compose(duplicate(A), tensor(delete(A), identity([A])))
        self.assertTrue(structurally_equal(term, identity([A])))

    def test_counit_right(self):
        """Δ ; (id ⊗ ◇) = id"""
        term = compose(duplicate(A), tensor(identity([A]), delete(A)))
        self.assertTrue(structurally_equal(term, identity([A])))

    def test_coassociativity(self):
        left = compose(duplicate(A), tensor(duplicate(A), identity([A])))
        right = compose(duplicate(A), tensor(identity([A]), duplicate(A)))
        self.assertTrue(structurally_equal(left, right))

    def test_cocommutativity(self):
        self.assertTrue(structurally_equal(compose(duplicate(A), swap([A], [A])), duplicate(A)))

    def test_copying_a_process_is_not_running_it_twice(self):
        """f ; Δ ≠ Δ ; (f ⊗ f): one causal process vs two independent runs"""
        once = compose(F, duplicate(B))
        twice = compose(duplicate(A), tensor(F, F))
        self.assertFalse(structurally_equal(once, twice))

    def test_discarding_a_process_is_not_erasing_it(self):
        self.assertFalse(structurally_equal(compose(F, delete(B)), delete(A)))

    def test_identical_boxes_matched_by_wiring(self):
        """Two samples of the same source: which one is copied is irrelevant"""
        pair = tensor(SOURCE, SOURCE)
        first = compose(pair, tensor(duplicate(A), delete(A)))
        second = compose(pair, tensor(delete(A), duplicate(A)))
        self.assertTrue(structurally_equal(first, second))
        # Copying one sample is not the same as keeping both
        self.assertFalse(structurally_equal(first, pair))


class TestWiringHelpers(unittest.TestCase):
    """Test structural morphism builders"""

    def test_copies(self):
        self.assertEqual(copies(A, 0), delete(A))
        self.assertEqual(copies(A, 1), identity([A]))
        self.assertEqual(copies(A, 2), duplicate(A))
        self.assertEqual(copies(A, 3).cod, (A, A, A))
        with self.assertRaises(ValueError):
            copies(A, -1)

    def test_permutation(self):
        perm = permutation([A, B, C], [2, 0, 1])
        self.assertEqual(perm.cod, (C, A, B))
        self.assertEqual(to_wiring(perm).outputs, (("in", 2), ("in", 0), ("in", 1)))

    def test_identity_permutation(self):
        self.assertEqual(permutation([A, B], [0, 1]), identity([A, B]))

    def test_single_swap_permutation(self):
        self.assertEqual(permutation([A, B], [1, 0]), Swap((A,), (B,)))

    def test_invalid_permutation(self):
        with self.assertRaises(ValueError):
            permutation([A, B], [0, 0])

    def test_rewire(self):
        term = rewire([A, B, C], [1, 1, 0])
        self.assertEqual(term.dom, (A, B, C))
        self.assertEqual(term.cod, (B, B, A))
        self.assertEqual(to_wiring(term).outputs, (("in", 1), ("in", 1), ("in", 0)))

    def test_rewire_out_of_range(self):
        with self.assertRaises(IndexError):
            rewire([A], [1])

    def test_compose_all(self):
        self.assertEqual(compose_all([identity([A]), F, identity([B])]), F)
        self.assertEqual(compose_all([], dom=[A]), identity([A]))
        with self.assertRaises(ValueError):
            compose_all([])
        with self.assertRaises(TypeMismatch):
            compose_all([identity([B]), F])

    def test_tensor_all_merges_identities(self):
        self.assertEqual(tensor_all([identity([A]), identity([B])]), identity([A, B]))
        self.assertEqual(tensor_all([]), identity([]))
        self.assertEqual(tensor_all([identity([]), F]), F)


class TestInspection(unittest.TestCase):

    def test_flatten(self):
        self.assertEqual(flatten_compose(compose(compose(F, G), H)), [F, G, H])
        self.assertEqual(flatten_tensor(tensor(F, tensor(G, H))), [F, G, H])

    def test_generators_of(self):
        term = compose(compose(F, G), compose(H, F))
        self.assertEqual([g.name for g in generators_of(term)], ["f", "g", "h"])

    def test_term_size(self):
        self.assertEqual(term_size(F), 1)
        self.assertEqual(term_size(compose(F, G)), 3)

    def test_node_kinds(self):
        self.assertIsInstance(compose(F, G), Compose)
        self.assertIsInstance(tensor(F, G), Tensor)
        self.assertIsInstance(identity([A]), Identity)
        self.assertIsInstance(duplicate(A), Duplicate)
        self.assertIsInstance(delete(A), Delete)


def run_tests():
    """Run all term algebra tests"""
    loader = unittest.TestLoader()
    suite = unittest.TestSuite()
    suite.addTests(loader.loadTestsFromTestCase(TestConstruction))
    suite.addTests(loader.loadTestsFromTestCase(TestCategoryLaws))
    suite.addTests(loader.loadTestsFromTestCase(TestCopyDiscardLaws))
    suite.addTests(loader.loadTestsFromTestCase(TestWiringHelpers))
    suite.addTests(loader.loadTestsFromTestCase(TestInspection))

    runner = unittest.TextTestRunner(verbosity=2)
    result = runner.run(suite)
    return result.wasSuccessful()


if __name__ == "__main__":
    success = run_tests()
    sys.exit(0 if success else 1)
