"""Identity generation: anchors, paths, semantics and confidence."""
