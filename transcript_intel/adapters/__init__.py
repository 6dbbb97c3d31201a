"""Port implementations."""
