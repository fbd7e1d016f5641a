"""
Canonical Form Model (CFM) Package

The generator-agnostic representation of a legacy electronic form, and the
batch machinery that turns analyzer results into target artifacts.

ARCHITECTURAL GUARANTEE:
------------------------
The model (cfm.model, cfm.taxonomy) contains ZERO knowledge of:
    - The source analyzer's data structures
    - SQL dialects
    - Target form platforms

Analyzer results enter through cfm.mapper only.
Target formats are produced by cfm.backends only.
cfm.batch ties the two together, one isolated item at a time.
"""

__version__ = "0.1.0"
