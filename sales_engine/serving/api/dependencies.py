"""
Request Dependencies
"""

from fastapi import HTTPException, Request

from sales_engine.analytics import SalesAnalyst
from sales_engine.engine import SalesEngine


def get_engine(request: Request) -> SalesEngine:
    """The engine loaded at startup"""
    engine = getattr(request.app.state, "engine", None)
    if engine is None:
        raise HTTPException(status_code=503, detail="Sales data not loaded")
    return engine


def get_analyst(request: Request) -> SalesAnalyst:
    return SalesAnalyst(get_engine(request))
