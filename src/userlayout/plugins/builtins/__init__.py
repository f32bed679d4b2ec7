"""Built-in layout event listeners."""
