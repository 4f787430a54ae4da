"""
Boundary layer for external system integrations.

Handles all interactions with external systems (the usage database and the
canvas scene-graph host). Provides adapters for infrastructure dependencies.
"""
