"""Visual assertions — screenshot baselines, comparison and test sessions."""

__version__ = "0.1.0"
