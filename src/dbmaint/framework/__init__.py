"""Framework integrations (operator notification channels)."""
