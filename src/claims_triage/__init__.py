"""Claims triage: classify, score and route pending insurance claims."""

__version__ = "0.1.0"
