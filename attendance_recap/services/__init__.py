"""Calendar, aggregation, grid layout and export services."""
