"""Complexity, context classification and exclusion resolution."""
