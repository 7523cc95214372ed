"""DraftSync: draft/publish synchronization engine."""
