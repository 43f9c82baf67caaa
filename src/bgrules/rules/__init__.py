"""Move validation, turn sequencing and game-end detection."""
