"""Screen-side tools: hierarchy parsing, filtering and device capture."""
