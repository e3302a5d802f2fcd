import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI

from opsdesk.core.config import LOG_LEVEL
from opsdesk.db.init_db import init_db
from opsdesk.api.endpoints import auth as auth_api
from opsdesk.api.endpoints import profiles as profiles_api
from opsdesk.api.endpoints import products as products_api
from opsdesk.api.endpoints import funnels as funnels_api
from opsdesk.api.endpoints import sales as sales_api
from opsdesk.api.endpoints import commissions as commissions_api
from opsdesk.api.endpoints import sdr as sdr_api
from opsdesk.api.endpoints import strategic as strategic_api

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield

app = FastAPI(title="OpsDesk API", version="0.1.0", lifespan=lifespan)

# Include API routers
app.include_router(auth_api.router, prefix="/api/v1/auth", tags=["Authentication"])
app.include_router(profiles_api.router, prefix="/api/v1/profiles", tags=["Profiles"])
app.include_router(products_api.router, prefix="/api/v1/products", tags=["Products"])
app.include_router(funnels_api.router, prefix="/api/v1/funnels", tags=["Funnels"])
app.include_router(sales_api.router, prefix="/api/v1/sales", tags=["Sales"])
app.include_router(commissions_api.router, prefix="/api/v1/commissions", tags=["Commissions"])
app.include_router(sdr_api.router, prefix="/api/v1/sdr", tags=["SDR"])
app.include_router(strategic_api.router, prefix="/api/v1/strategic", tags=["Strategic Sessions"])

@app.get("/ping", tags=["Health Check"])
async def ping():
    return {"message": "pong"}
