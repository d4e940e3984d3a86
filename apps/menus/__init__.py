"""
Menus application.

Navigation entries stored as an adjacency list (parent_id = 0 for roots),
filtered per caller by effective permissions and materialized into a tree
at read time.
"""
