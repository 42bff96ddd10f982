"""schemagen — table-schema aggregator generator and drift validator."""

__version__ = "0.1.0"
