"""Script resolution and compile-cache pipeline."""
