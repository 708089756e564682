"""Session identity and role lookup adapters."""
