"""
NoteSphere.

- backend/: Notes API, query and lifecycle engine, database, configuration
"""
