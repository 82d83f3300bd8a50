"""
FastAPI routers for the Sanaee directory.

Each file inside this package exposes an APIRouter that is included in the
application built by sanaee.app.create_app().
"""
