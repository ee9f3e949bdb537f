"""sqlmason utilities package."""
