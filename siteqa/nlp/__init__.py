"""Rule-based question classification (preset detection)."""
