"""Business logic services for Serenity."""
