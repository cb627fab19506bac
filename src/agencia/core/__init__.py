"""Core building blocks: spec model, linter, registry, engine, sessions, backends."""
