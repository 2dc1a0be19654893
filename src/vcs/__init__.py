"""Git history access for impactmap."""
