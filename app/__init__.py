"""
Application Package

FastAPI application exposing the aggregated funding rate data.

Modules:
    - context: AppContext built at startup (registry, cache, database, engine, scheduler)
    - main: FastAPI app, lifespan and routes
"""
