"""Text processing helpers used by the renderer and parser."""
