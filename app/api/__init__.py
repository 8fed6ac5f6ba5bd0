# API endpoints package
from app.api.mikrotik_dashboard_routes import router as mikrotik_dashboard_router

__all__ = ['mikrotik_dashboard_router']
