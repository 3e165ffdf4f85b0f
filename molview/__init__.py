"""molview: parse PDB, mmCIF, MOL and MOL2 text into one structural model."""

__version__ = "0.1.0"
