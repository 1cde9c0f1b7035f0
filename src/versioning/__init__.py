"""Version, framework and package-identity models."""
