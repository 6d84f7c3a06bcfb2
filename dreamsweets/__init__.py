"""DreamSweets: dessert concepts and pictures from a single keyword."""
