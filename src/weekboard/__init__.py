"""Weekly task board: optimistic task sync, drag reordering and a small task API."""

__version__ = "0.1.0"
