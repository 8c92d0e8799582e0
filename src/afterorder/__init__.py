"""afterorder: compile order resolution from ``// @after`` annotations."""

__version__ = "0.1.0"
