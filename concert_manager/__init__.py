"""Concert management system: venues, concerts, tickets, payments and feedback."""

__version__ = "1.0.0"
