"""mdboard - Kanban board kept in markdown files."""

__version__ = "0.1.0"
