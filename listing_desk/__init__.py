"""listing-desk: property listing search and credit-gated listing actions."""

__version__ = "0.1.0"
