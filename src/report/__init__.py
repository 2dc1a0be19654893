"""Output records and writers for impactmap."""
