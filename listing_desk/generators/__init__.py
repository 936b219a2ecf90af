"""Sample data generators."""

from listing_desk.generators.listing import ListingGenerator

__all__ = ["ListingGenerator"]
