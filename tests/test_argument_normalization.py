from __future__ import annotations

import importlib.util
import types
import unittest


JAX_AVAILABLE = importlib.util.find_spec("jax") is not None


@unittest.skipUnless(JAX_AVAILABLE, "jax is required for argument normalization tests")
class ArgumentNormalizationTests(unittest.TestCase):
    def test_inputs_only(self) -> None:
        from ufunc_override import normalize_call

        call = normalize_call(("a", "b"), None, 2)
        self.assertEqual(call.inputs, ("a", "b"))
        self.assertEqual(call.kwargs, {})

    def test_single_trailing_argument_is_stored_directly(self) -> None:
        from ufunc_override import normalize_call

        out = object()
        call = normalize_call(("a", "b", out), None, 2)
        self.assertEqual(call.inputs, ("a", "b"))
        self.assertIs(call.kwargs["out"], out)

    def test_several_trailing_arguments_become_a_tuple(self) -> None:
        from ufunc_override import normalize_call

        o1, o2 = object(), object()
        call = normalize_call(("a", "b", o1, o2), None, 2)
        self.assertEqual(call.kwargs["out"], (o1, o2))

    def test_keywords_are_copied_not_shared(self) -> None:
        from ufunc_override import normalize_call

        kwds = {"dtype": "float32"}
        call = normalize_call(("a", "b", "o"), kwds, 2)
        self.assertEqual(call.kwargs, {"dtype": "float32", "out": "o"})
        self.assertEqual(kwds, {"dtype": "float32"})
        self.assertIsNot(call.kwargs, kwds)

    def test_trailing_outputs_replace_out_keyword(self) -> None:
        from ufunc_override import normalize_call

        call = normalize_call(("a", "o"), {"out": "ignored"}, 1)
        self.assertEqual(call.kwargs["out"], "o")

    def test_any_mapping_is_accepted(self) -> None:
        from ufunc_override import normalize_call

        call = normalize_call(("a",), types.MappingProxyType({"axis": 0}), 1)
        self.assertEqual(call.kwargs, {"axis": 0})

    def test_trailing_values_are_not_validated(self) -> None:
        from ufunc_override import normalize_call

        call = normalize_call((1, 2, 3), None, 1)
        self.assertEqual(call.inputs, (1,))
        self.assertEqual(call.kwargs["out"], (2, 3))

    def test_bad_keyword_containers_raise_construction_error(self) -> None:
        from ufunc_override import ConstructionError, normalize_call

        with self.assertRaises(ConstructionError):
            normalize_call(("a",), [("out", 1)], 1)
        with self.assertRaises(ConstructionError):
            normalize_call(("a",), {1: "x"}, 1)


if __name__ == "__main__":
    unittest.main()
