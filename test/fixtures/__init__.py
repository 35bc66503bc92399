"""
Importable fixtures for module-scoped registry scans.
"""
