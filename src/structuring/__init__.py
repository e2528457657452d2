"""Raw record access and normalization into study models."""
