from __future__ import annotations

import importlib.util
import unittest


JAX_AVAILABLE = importlib.util.find_spec("jax") is not None


class Overriding:
    def __jax_ufunc__(self, ufunc, method, i, inputs, **kwargs):
        return NotImplemented


class Plain:
    pass


class BrokenProperty:
    @property
    def __jax_ufunc__(self):
        raise RuntimeError("property exploded")


class MissingProperty:
    @property
    def __jax_ufunc__(self):
        raise AttributeError("not really there")


@unittest.skipUnless(JAX_AVAILABLE, "jax is required for candidate discovery tests")
class CandidateDiscoveryTests(unittest.TestCase):
    def test_native_arrays_and_scalars_are_never_candidates(self) -> None:
        import jax.numpy as jnp
        import numpy as np

        from ufunc_override import discover_candidates

        args = (jnp.arange(3), 1, 2.5, 1j, True, "s", b"b", np.float32(1.0), np.int64(3))
        self.assertEqual(discover_candidates(args), [])

    def test_candidates_keep_left_to_right_positions(self) -> None:
        import jax.numpy as jnp

        from ufunc_override import discover_candidates

        a, b = Overriding(), Overriding()
        found = discover_candidates((a, jnp.ones(2), Plain(), b))
        self.assertEqual([c.position for c in found], [0, 3])
        self.assertIs(found[0].value, a)
        self.assertIs(found[1].value, b)

    def test_native_type_check_is_exact(self) -> None:
        import jax.numpy as jnp
        import numpy as np

        from ufunc_override.operands import is_native_array

        class FakeArray:
            pass

        self.assertTrue(is_native_array(jnp.ones(2)))
        self.assertTrue(is_native_array(jnp.asarray(1.0)))
        self.assertFalse(is_native_array(np.ones(2)))
        self.assertFalse(is_native_array(FakeArray()))
        self.assertFalse(is_native_array([1, 2, 3]))

    def test_scalar_subclasses_are_skipped_even_with_an_override(self) -> None:
        from ufunc_override import discover_candidates

        class OverridingInt(int):
            def __jax_ufunc__(self, *args, **kwargs):
                return 0

        self.assertEqual(discover_candidates((OverridingInt(3),)), [])

    def test_custom_attribute_name(self) -> None:
        from ufunc_override import discover_candidates

        class Custom:
            def __custom_ufunc__(self, *args, **kwargs):
                return 0

        self.assertEqual(discover_candidates((Custom(),)), [])
        found = discover_candidates((Custom(),), attribute="__custom_ufunc__")
        self.assertEqual(len(found), 1)

    def test_attribute_error_from_property_means_no_override(self) -> None:
        from ufunc_override import discover_candidates

        self.assertEqual(discover_candidates((MissingProperty(),)), [])

    def test_other_lookup_failures_raise_attribute_lookup_error(self) -> None:
        from ufunc_override import AttributeLookupError, discover_candidates

        with self.assertRaises(AttributeLookupError) as ctx:
            discover_candidates((BrokenProperty(),))
        self.assertIsInstance(ctx.exception.__cause__, RuntimeError)

    def test_injected_predicates_are_consulted(self) -> None:
        from ufunc_override import discover_candidates

        a, b = Overriding(), Overriding()
        found = discover_candidates(
            (a, b),
            native_array=lambda value: value is a,
            native_scalar=lambda value: False,
        )
        self.assertEqual([c.position for c in found], [1])

    def test_raising_predicate_becomes_type_check_error(self) -> None:
        from ufunc_override import TypeCheckError, discover_candidates

        def broken(value) -> bool:
            raise RuntimeError("predicate exploded")

        with self.assertRaises(TypeCheckError) as ctx:
            discover_candidates((Overriding(),), native_scalar=broken)
        self.assertIsInstance(ctx.exception.__cause__, RuntimeError)
        self.assertIsInstance(ctx.exception, TypeError)


if __name__ == "__main__":
    unittest.main()
