"""Platform core: cached entity store, extension hooks and authorization resolution."""

__version__ = "1.0.0"
