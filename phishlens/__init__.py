"""PhishLens: demo phishing email detector."""

__version__ = "1.0.0"
