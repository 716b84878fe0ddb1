"""One-step-ahead KPI forecasting engine."""

__version__ = "0.1.0"
