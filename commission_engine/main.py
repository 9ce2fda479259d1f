import logging

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from commission_engine.api.endpoints import assignments as assignments_api
from commission_engine.api.endpoints import catalog as catalog_api
from commission_engine.api.endpoints import commissions as commissions_api
from commission_engine.api.endpoints import events as events_api
from commission_engine.api.endpoints import product_rules as product_rules_api
from commission_engine.api.endpoints import recurring as recurring_api
from commission_engine.api.endpoints import subscriptions as subscriptions_api
from commission_engine.core.config import HOST, LOG_LEVEL, PORT
from commission_engine.core.exceptions import CommissionEngineError
from commission_engine.db import base  # noqa: F401  registers every model with the mapper

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(title="Commission Engine API", version="0.1.0")

@app.exception_handler(CommissionEngineError)
async def commission_engine_error_handler(request: Request, exc: CommissionEngineError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message, "details": exc.details})

# Include API routers
app.include_router(events_api.router, prefix="/api/v1/events", tags=["Events"])
app.include_router(recurring_api.router, prefix="/api/v1/recurring", tags=["Recurring Commissions"])
app.include_router(commissions_api.router, prefix="/api/v1/commissions", tags=["Commissions"])
app.include_router(product_rules_api.router, prefix="/api/v1/product-rules", tags=["Product Rules"])
app.include_router(assignments_api.router, prefix="/api/v1/assignments", tags=["Assignments"])
app.include_router(catalog_api.router, prefix="/api/v1/catalog", tags=["Catalog"])
app.include_router(subscriptions_api.router, prefix="/api/v1/subscriptions", tags=["Subscriptions"])

@app.get("/ping", tags=["Health Check"])
async def ping():
    return {"message": "pong"}


def run():
    uvicorn.run("commission_engine.main:app", host=HOST, port=PORT)


if __name__ == "__main__":
    run()
