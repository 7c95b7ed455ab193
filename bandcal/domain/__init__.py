"""Calendar views built from events: visibility, month grid, agenda."""
