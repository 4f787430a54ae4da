"""
FlowChart AI backend.

Turns a streamed, tool-calling language-model conversation into diagram scene
elements, keeps a textual description of the canvas in sync, and gates turns
against tiered usage quotas.
"""

__version__ = "0.1.0"
