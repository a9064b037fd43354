"""
Services Package
Field mapping, reference lookup, parent resolution and grid orchestration
for the planning hierarchy.
"""
