"""Application layer: the provider lifecycle and the services it coordinates."""
