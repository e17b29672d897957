"""Daily pageview forecasting with a small feed-forward neural network."""

__version__ = "0.1.0"
