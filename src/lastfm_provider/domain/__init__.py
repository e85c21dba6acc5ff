"""Domain layer: value objects, capability ports and exceptions."""
