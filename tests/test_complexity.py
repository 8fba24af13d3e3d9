"""
Tests for the cyclomatic complexity calculator.
"""

import pytest

from seamscan.analysis.complexity import code_unit, complexity, display_name
from seamscan.core.tree import NodeKind, TreeBuilder

from helpers import add_class, add_ifs, add_method, method_with_ifs


def _unit(tree, name):
    node = next(n for n in tree if n.name == name and n.kind in (NodeKind.METHOD, NodeKind.LOCAL_FUNCTION))
    return code_unit(tree, node)


class TestComplexityScore:
    """Decision point counting."""

    def test_empty_method_scores_one(self, builder):
        """A method without decisions has complexity 1."""
        cls = add_class(builder, "Service")
        add_method(builder, cls, "Run")
        tree = builder.build()
        assert complexity(_unit(tree, "Run")) == 1

    def test_each_if_adds_one(self):
        """24 if statements give 25."""
        tree = method_with_ifs(24)
        assert complexity(_unit(tree, "Process")) == 25

    def test_absent_body_scores_one(self, builder):
        """Abstract declarations have no body and still score 1."""
        cls = add_class(builder, "Service")
        add_method(builder, cls, "Run", body=None, modifiers=("public", "abstract"), is_abstract=True)
        tree = builder.build()
        unit = _unit(tree, "Run")
        assert not unit.has_body
        assert complexity(unit) == 1

    def test_loops_catch_and_ternary(self, builder):
        """for, foreach, while, do, catch and ?: each add one."""
        cls = add_class(builder, "Service")
        body = add_method(builder, cls, "Run")
        for kind in (NodeKind.FOR, NodeKind.FOREACH, NodeKind.WHILE, NodeKind.DO):
            builder.add(kind, parent=body)
        try_node = builder.add(NodeKind.TRY, parent=body)
        builder.add(NodeKind.BLOCK, parent=try_node)
        builder.add(NodeKind.CATCH, parent=try_node)
        builder.add(NodeKind.FINALLY, parent=try_node)
        builder.add(NodeKind.CONDITIONAL, parent=body)
        tree = builder.build()
        assert complexity(_unit(tree, "Run")) == 7

    def test_logical_operators(self, builder):
        """`a>0 && b>0 && c>0 || d>0` scores 4."""
        cls = add_class(builder, "Service")
        body = add_method(builder, cls, "Check")
        condition = builder.add(NodeKind.IF, parent=body)
        or_node = builder.add(NodeKind.BINARY, parent=condition, operator="||")
        and_outer = builder.add(NodeKind.BINARY, parent=or_node, operator="&&")
        and_inner = builder.add(NodeKind.BINARY, parent=and_outer, operator="&&")
        builder.add(NodeKind.BINARY, parent=and_inner, operator=">")
        builder.add(NodeKind.BINARY, parent=and_inner, operator=">")
        builder.add(NodeKind.BINARY, parent=and_outer, operator=">")
        builder.add(NodeKind.BINARY, parent=or_node, operator=">")
        tree = builder.build()
        # 1 base + 1 if + 2 && + 1 ||
        assert complexity(_unit(tree, "Check")) == 5

    def test_logical_expression_body(self, builder):
        """The same expression as an expression body scores 4."""
        cls = add_class(builder, "Service")
        body = add_method(builder, cls, "Check", body=NodeKind.EXPRESSION_BODY)
        or_node = builder.add(NodeKind.BINARY, parent=body, operator="||")
        and_outer = builder.add(NodeKind.BINARY, parent=or_node, operator="&&")
        builder.add(NodeKind.BINARY, parent=and_outer, operator="&&")
        tree = builder.build()
        assert complexity(_unit(tree, "Check")) == 4

    def test_null_coalescing_counts(self, builder):
        """`??` is a decision point, arithmetic operators are not."""
        cls = add_class(builder, "Service")
        body = add_method(builder, cls, "Get")
        builder.add(NodeKind.BINARY, parent=body, operator="??")
        builder.add(NodeKind.BINARY, parent=body, operator="+")
        tree = builder.build()
        assert complexity(_unit(tree, "Get")) == 2


class TestSwitches:
    """Case labels and switch expression arms."""

    def test_switch_expression_discard_not_counted(self, builder):
        """Seven arms plus a discard arm score 8."""
        cls = add_class(builder, "Service")
        body = add_method(builder, cls, "Map")
        switch = builder.add(NodeKind.SWITCH_EXPRESSION, parent=body)
        for _ in range(7):
            builder.add(NodeKind.SWITCH_ARM, parent=switch)
        builder.add(NodeKind.SWITCH_ARM, parent=switch, is_discard=True)
        tree = builder.build()
        assert complexity(_unit(tree, "Map")) == 8

    def test_switch_statement_default_not_counted(self, builder):
        """Case labels count, default and discard labels do not."""
        cls = add_class(builder, "Service")
        body = add_method(builder, cls, "Map")
        switch = builder.add(NodeKind.SWITCH, parent=body)
        builder.add(NodeKind.CASE_LABEL, parent=switch)
        builder.add(NodeKind.CASE_LABEL, parent=switch)
        builder.add(NodeKind.CASE_LABEL, parent=switch, is_discard=True)
        builder.add(NodeKind.DEFAULT_LABEL, parent=switch)
        tree = builder.build()
        assert complexity(_unit(tree, "Map")) == 3


class TestNestedUnits:
    """Nested closures are scored on their own."""

    def test_lambda_decisions_not_counted(self, builder):
        """Decisions inside a lambda do not count for the enclosing method."""
        cls = add_class(builder, "Service")
        body = add_method(builder, cls, "Run")
        add_ifs(builder, body, 2)
        lam = builder.add(NodeKind.LAMBDA, parent=body)
        lam_body = builder.add(NodeKind.BLOCK, parent=lam)
        add_ifs(builder, lam_body, 5)
        tree = builder.build()
        assert complexity(_unit(tree, "Run")) == 3
        assert complexity(code_unit(tree, tree[lam])) == 6

    def test_local_function_and_anonymous_method(self, builder):
        """Local functions and anonymous methods are excluded too."""
        cls = add_class(builder, "Service")
        body = add_method(builder, cls, "Run")
        local = builder.add(NodeKind.LOCAL_FUNCTION, parent=body, name="Helper")
        add_ifs(builder, builder.add(NodeKind.BLOCK, parent=local), 3)
        anonymous = builder.add(NodeKind.ANONYMOUS_METHOD, parent=body)
        add_ifs(builder, builder.add(NodeKind.BLOCK, parent=anonymous), 4)
        tree = builder.build()
        assert complexity(_unit(tree, "Run")) == 1
        assert complexity(_unit(tree, "Helper")) == 4

    def test_non_unit_raises(self, builder):
        """Only function-like nodes are code units."""
        cls = add_class(builder, "Service")
        tree = builder.build()
        with pytest.raises(ValueError):
            code_unit(tree, tree[cls])


class TestMetrics:
    """Per-unit metrics and display names."""

    def test_accessor_display_name(self, builder):
        """Accessors are named after their property."""
        cls = add_class(builder, "Service")
        prop = builder.add(NodeKind.PROPERTY, parent=cls, name="Total")
        getter = builder.add(NodeKind.ACCESSOR, parent=prop, name="get")
        tree = builder.build()
        assert display_name(tree, tree[getter]) == "Total.get"

    def test_tree_builder_rejects_unknown_parent(self):
        """Parents must be added before their children."""
        with pytest.raises(ValueError):
            TreeBuilder().add(NodeKind.CLASS, parent=5)
