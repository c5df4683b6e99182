from fastapi import FastAPI
import logging

from cardstack.api.routes import router

app = FastAPI(title="cardstack", version="0.1.0")
app.include_router(router)
# Configure logging
logging.basicConfig(level=logging.DEBUG)
logger = logging.getLogger(__name__)


@app.get("/info")
async def info() -> dict[str, str]:
    return {"name": "cardstack", "version": "0.1.0"}
