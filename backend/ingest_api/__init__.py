"""
Sensor Ingest Backend
=====================

This is the Python package for the backend API.

HOW IT'S ORGANIZED:
------------------
- models/     = Data structures (what does a reading look like?)
- utils/      = Small helpers (fixing up bodies, turning values into numbers)
- services/   = Workers (normalize, route, store, build dashboard views)
- routers/    = API endpoints (the doors into our app)
- config.py   = Settings from the environment
- main.py     = Puts it all together and starts the server
"""
