"""
Patrol input and output handling.

Validates caller-supplied patrol fields and renders patrol sets for export.
"""
