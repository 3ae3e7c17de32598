"""Pet Story Generator backend."""
