"""Core business logic for wt, independent of the CLI."""
