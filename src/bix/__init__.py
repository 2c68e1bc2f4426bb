"""bix: a project manager that wraps project-local handler scripts."""

__version__ = "0.3.0"
