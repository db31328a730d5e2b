from fastapi import FastAPI

from .api import health, report

app = FastAPI(title="Mail Fleet Sizing Report")

app.include_router(health.router, prefix="/health", tags=["health"])
app.include_router(report.router, prefix="/report", tags=["report"])
