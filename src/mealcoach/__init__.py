"""Personal nutrition coaching with weekly TDEE check-ins."""

__version__ = "0.1.0"
