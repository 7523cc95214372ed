"""Platform services used by the engine's adapters."""
