"""Draft/publish synchronization engine."""
