# rf_mutate/__init__.py
"""Design of structure-disrupting RNA mutants and their compensatory rescues."""

__version__ = "1.0.0"
