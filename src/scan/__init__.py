"""Working-tree scanning for impactmap."""
