"""Use-case layer for the rollout workflow.

Modules coordinate domain objects and ports without performing transport I/O
directly.
"""
