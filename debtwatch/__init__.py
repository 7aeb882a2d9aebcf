"""DebtWatch — debt-collection tracking backend."""

__version__ = "0.4.0"
