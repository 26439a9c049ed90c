"""
Utilities

Date window resolution, display formatters and logging setup used across
the engine. Import from the submodules directly.
"""
