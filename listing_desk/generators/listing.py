"""Sample property listing generator."""

from __future__ import annotations

import random
from decimal import Decimal
from typing import Iterator

from faker import Faker

from listing_desk.models.enums import Furnishing, ListingStatus, ListingType, PropertyType
from listing_desk.models.listing import PropertyRecord

# Cities per Malaysian state used for listing addresses
CITIES_BY_STATE: dict[str, list[str]] = {
    "Kuala Lumpur": ["Kuala Lumpur", "Cheras", "Bangsar", "Mont Kiara"],
    "Selangor": ["Petaling Jaya", "Shah Alam", "Subang Jaya", "Klang"],
    "Penang": ["George Town", "Bayan Lepas", "Butterworth"],
    "Johor": ["Johor Bahru", "Iskandar Puteri", "Batu Pahat"],
    "Perak": ["Ipoh", "Taiping"],
    "Sabah": ["Kota Kinabalu", "Sandakan"],
    "Sarawak": ["Kuching", "Miri"],
    "Melaka": ["Melaka"],
}

AMENITIES = [
    "pool", "gym", "parking", "security", "playground", "balcony",
    "air conditioning", "garden", "lift", "clubhouse",
]

# Sale price ranges by property type (RM)
SALE_PRICE_RANGES = {
    PropertyType.HOUSE: (450_000, 2_500_000),
    PropertyType.APARTMENT: (250_000, 900_000),
    PropertyType.CONDO: (400_000, 1_800_000),
    PropertyType.VILLA: (1_500_000, 8_000_000),
    PropertyType.STUDIO: (180_000, 500_000),
    PropertyType.SHOPHOUSE: (700_000, 3_500_000),
}

STATUS_WEIGHTS = {
    ListingStatus.ACTIVE: 0.55,
    ListingStatus.PENDING: 0.20,
    ListingStatus.INACTIVE: 0.15,
    ListingStatus.SOLD: 0.05,
    ListingStatus.RENTED: 0.05,
}


class ListingGenerator:
    """Generate realistic Malaysian property listings for demos and tests.

    Parameters
    ----------
    seed : int | None
        Seeds both Faker and the module-level ``random`` so a batch is
        reproducible.
    locale : str
        Faker locale for addresses and text; ``ms_MY`` gives local street
        names.
    """

    PROPERTY_TYPES = list(PropertyType)
    PROPERTY_WEIGHTS = [0.25, 0.20, 0.25, 0.05, 0.15, 0.10]

    def __init__(self, seed: int | None = None, locale: str = "en_US") -> None:
        self.fake = Faker(locale)
        self.seed = seed
        if seed is not None:
            self.fake.seed_instance(seed)
            random.seed(seed)

    def generate(self, owner_id: str | None = None) -> PropertyRecord:
        """Generate a single listing.

        Parameters
        ----------
        owner_id : str | None
            Agent owning the listing; a random one when ``None``.

        Returns
        -------
        PropertyRecord
            Generated listing with id and timestamps filled in.
        """
        return self._generate_one(owner_id or self.fake.uuid4())

    def generate_batch(self, count: int, owner_id: str | None = None) -> Iterator[PropertyRecord]:
        """Generate multiple listings.

        Parameters
        ----------
        count : int
            Number of listings to generate.
        owner_id : str | None
            Agent owning every listing; random per listing when ``None``.

        Yields
        ------
        PropertyRecord
            Generated listings.
        """
        for _ in range(count):
            yield self.generate(owner_id)

    def _generate_one(self, owner_id: str) -> PropertyRecord:
        property_type = random.choices(self.PROPERTY_TYPES, weights=self.PROPERTY_WEIGHTS, k=1)[0]
        listing_type = random.choice(list(ListingType))
        status = random.choices(
            list(STATUS_WEIGHTS), weights=list(STATUS_WEIGHTS.values()), k=1
        )[0]
        if status == ListingStatus.SOLD and listing_type == ListingType.RENT:
            status = ListingStatus.RENTED
        elif status == ListingStatus.RENTED and listing_type == ListingType.SALE:
            status = ListingStatus.SOLD

        state = random.choice(list(CITIES_BY_STATE))
        city = random.choice(CITIES_BY_STATE[state])

        low, high = SALE_PRICE_RANGES[property_type]
        price = random.randint(low, high)
        if listing_type == ListingType.RENT:
            # Monthly rent at roughly 0.4% of value
            price = max(500, int(round(price * 0.004, -1)))

        bedrooms = 0 if property_type == PropertyType.STUDIO else random.randint(1, 6)
        created_at = self.fake.date_time_between(start_date="-2y", end_date="now")
        image_count = random.randint(0, 5)

        return PropertyRecord(
            id=self.fake.uuid4(),
            owner_id=owner_id,
            title=f"{self.fake.word().capitalize()} {property_type.value.title()} in {city}",
            description=self.fake.paragraph(nb_sentences=4),
            property_type=property_type,
            listing_type=listing_type,
            price=Decimal(price),
            bedrooms=bedrooms,
            bathrooms=max(1, bedrooms - random.randint(0, 2)),
            sqft=random.randint(350, 6000),
            address=self.fake.street_address(),
            city=city,
            state=state,
            postal_code=self.fake.numerify("#####"),
            furnished=random.choice(list(Furnishing)).value,
            amenities=frozenset(random.sample(AMENITIES, k=random.randint(0, 5))),
            image_urls=tuple(self.fake.image_url() for _ in range(image_count)),
            status=status,
            is_featured=status == ListingStatus.ACTIVE and random.random() < 0.15,
            is_premium=status == ListingStatus.ACTIVE and random.random() < 0.05,
            views_count=random.randint(0, 2000) if status != ListingStatus.PENDING else 0,
            created_at=created_at,
            updated_at=self.fake.date_time_between(start_date=created_at, end_date="now"),
        )
