"""Settings, error taxonomy and the dependency resolver."""
