"""CivicPulse grievance intake and classification backend."""

__version__ = "0.1.0"
