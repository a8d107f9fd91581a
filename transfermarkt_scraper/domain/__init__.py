"""
Domain Module
Modelle, Enums, Fehler und Transfer-Objekte

Note: no imports here; ``common.identity`` and ``domain.models`` import each other's modules.
"""
