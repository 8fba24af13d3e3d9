"""Syntax tree model, findings, options and the rule engine."""
