"""Service layer: thin helpers over the taskboard models."""
