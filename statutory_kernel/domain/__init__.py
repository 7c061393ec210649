"""Pure domain value objects for the statutory kernel."""
