"""Staff console for the student feedback system."""

__version__ = "1.0.0"
