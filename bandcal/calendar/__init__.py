"""Calendar primitives: models, date helpers, recurrence and span layout."""
