"""
Tests for import dependency ordering.
"""

from __future__ import annotations

import pytest

from mdflow.parser.errors import CircularImportError
from mdflow.parser.graph import topological_order


class TestTopologicalOrder:
    """Tests for topological_order."""

    def test_empty_graph(self):
        assert topological_order([], {}) == []

    def test_roots_sorted_alphabetically(self):
        assert topological_order(["z-root", "a-root", "m-root"], {}) == [
            "a-root",
            "m-root",
            "z-root",
        ]

    def test_chain_puts_dependencies_first(self):
        order = topological_order(["a", "b", "c"], {"a": ["b"], "b": ["c"]})
        assert order == ["c", "b", "a"]

    def test_diamond(self):
        order = topological_order(["a", "b", "c"], {"a": ["c"], "b": ["c"]})
        assert order == ["c", "a", "b"]

    def test_complex_tree(self):
        order = topological_order(
            ["a", "b", "c", "d", "e", "f"],
            {"a": ["c", "d"], "b": ["e"], "c": ["f"]},
        )
        assert order == ["d", "e", "b", "f", "c", "a"]

    def test_newly_ready_node_competes_with_waiting_nodes(self):
        # "b" becomes ready after "a-dep" and sorts before "c"
        order = topological_order(["a-dep", "b", "c"], {"b": ["a-dep"]})
        assert order == ["a-dep", "b", "c"]

    def test_unknown_children_ignored(self):
        order = topological_order(["a", "b"], {"a": ["b", "skipped-optional"]})
        assert order == ["b", "a"]

    def test_duplicate_edges_counted_once(self):
        order = topological_order(["a", "b"], {"a": ["b", "b"]})
        assert order == ["b", "a"]

    def test_order_independent_of_input_order(self):
        children = {"x": ["y"], "w": ["y"]}
        assert topological_order(["x", "y", "w"], children) == topological_order(
            ["w", "y", "x"], children
        )

    def test_cycle_raises_with_path(self):
        with pytest.raises(CircularImportError) as exc_info:
            topological_order(["a", "b", "c"], {"a": ["b"], "b": ["c"], "c": ["a"]})

        assert exc_info.value.cycle == ["a", "b", "c", "a"]

    def test_self_import_is_a_cycle(self):
        with pytest.raises(CircularImportError) as exc_info:
            topological_order(["a"], {"a": ["a"]})

        assert exc_info.value.cycle == ["a", "a"]
