"""Timer engine: catalog, state machine, alerts, ticking."""
