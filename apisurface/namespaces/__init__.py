"""
Declared namespaces. Importing a module registers its declarations in the
global schema registry; use ``load_builtin_surface()`` to load them by name.
"""
