"""Identity resolution: narrowing, semantic filtering, constraints and fallback."""
