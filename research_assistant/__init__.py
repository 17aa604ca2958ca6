"""Research assistant search backend."""
