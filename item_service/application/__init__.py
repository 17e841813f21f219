"""
Application Layer

HTTP surface (FastAPI), business service, component wiring and process lifecycle.
"""
