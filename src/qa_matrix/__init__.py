"""Run a project's QA suite across a matrix of python environments."""

__version__ = "0.1.0"
