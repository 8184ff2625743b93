"""Core building blocks shared across Serenity services."""
