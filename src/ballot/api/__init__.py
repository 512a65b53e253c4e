"""HTTP adapter for Ballot."""
