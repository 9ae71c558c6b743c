"""Command line utilities for the fertilizer engine."""
