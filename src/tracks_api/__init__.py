"""HTTP surface for learning-track resolution."""
