"""Photo ingredient scanning and recipe suggestions."""
