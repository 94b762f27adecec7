"""Car-parts inventory and ordering API."""
