from fastapi import FastAPI
from .routes.priority import router as priority_router
from .routes.dashboard import router as dashboard_router

app = FastAPI(title="DeliveryGenie Priority Service",
              description="Ranks delivery orders by urgency for drivers",
    version="0.1.0",
    docs_url="/docs",          # Swagger UI
    redoc_url="/redoc",        # ReDoc
    openapi_url="/openapi.json")

app.include_router(priority_router)
app.include_router(dashboard_router)

@app.get("/health")
def health():
    return {"ok": True}
