"""Task queue and input pipeline services."""
