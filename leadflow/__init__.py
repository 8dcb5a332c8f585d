"""LeadFlow: lead lifecycle and automation engine."""

__version__ = "1.0.0"
