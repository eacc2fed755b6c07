from .git import GitInspector

__all__ = ["GitInspector"]
