"""Application layer: services built on the entity store, cache and registry."""
