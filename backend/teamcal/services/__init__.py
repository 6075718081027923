"""Calendar engine services."""
