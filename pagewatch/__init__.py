"""pagewatch: report items that newly appear on watched web pages."""

__version__ = "0.1.0"
