"""tagrules: declarative record validation driven by field tag strings."""

__version__ = "0.1.0"
