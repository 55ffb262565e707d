"""dialr: a radial day planner with energy-aware auto-arrange."""

__version__ = "0.1.0"
