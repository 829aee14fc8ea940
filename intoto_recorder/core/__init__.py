"""Core recording pipeline: collection, assembly, signing and the step lifecycle."""
