from .nodes import PathNodeManager

__all__ = ["PathNodeManager"]
