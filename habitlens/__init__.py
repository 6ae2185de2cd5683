"""habitlens - temporal analysis of code-suggestion feedback."""

__version__ = "0.1.0"
