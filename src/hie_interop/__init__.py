"""HIE Interop Demo.

Patient-record interoperability demo: a central broker, three simulated
hospital nodes and a clinical-workflow portal, each a small Flask service
over a flat JSON-file store.
"""

__version__ = "0.1.0"
