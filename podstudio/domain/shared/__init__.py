"""Building blocks shared by all domains."""
