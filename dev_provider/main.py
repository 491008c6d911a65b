"""
Development OpenID provider for the implicit client.
Discovery, authorize (fragment response), userinfo and end session under /oauth2. Port 9000.
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI

from dev_provider.authorize import router as authorize_router
from dev_provider.config import OAUTH2_PREFIX
from dev_provider.database import SessionLocal, init_db
from dev_provider.keys import get_signing_key
from dev_provider.logout import router as logout_router
from dev_provider.seed import seed_from_env
from dev_provider.userinfo import router as userinfo_router
from dev_provider.well_known import router as well_known_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables, load signing key, seed users/clients on startup."""
    init_db()
    get_signing_key()
    db = SessionLocal()
    try:
        seed_from_env(db)
    finally:
        db.close()
    yield


app = FastAPI(title="Dev OpenID Provider", version="0.1.0", lifespan=lifespan)
app.include_router(well_known_router, prefix=OAUTH2_PREFIX, tags=["well-known"])
app.include_router(authorize_router, prefix=OAUTH2_PREFIX, tags=["authorize"])
app.include_router(userinfo_router, prefix=OAUTH2_PREFIX, tags=["userinfo"])
app.include_router(logout_router, prefix=OAUTH2_PREFIX, tags=["logout"])


@app.get("/health")
def health():
    """Health check endpoint."""
    return {"status": "ok", "service": "dev_provider"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "dev_provider.main:app",
        host="127.0.0.1",
        port=9000,
        reload=True,
    )
