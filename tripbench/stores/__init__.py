"""Persistence for maps, scenarios, edits, prebaked analytics and checkpoints."""
