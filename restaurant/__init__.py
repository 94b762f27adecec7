"""Restaurant point-of-sale and table management API."""
