"""Model-to-SQL helpers, field selection and masks, transactions, resource identifiers, health checks and integration-test utilities."""

__version__ = "2.0.0"