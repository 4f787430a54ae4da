"""
Scene-graph host boundary.

Exports: SceneGraphHost, InMemorySceneHost
"""

from flowchart_ai.boundary.scene.host import InMemorySceneHost, SceneGraphHost

__all__ = ["SceneGraphHost", "InMemorySceneHost"]
