"""Study folder domain models."""
