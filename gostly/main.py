from fastapi import FastAPI

from gostly.config import settings
from gostly.logging_config import setup_logging
from gostly.routers import admin, whatsapp_webhook

setup_logging(settings.log_level)

app = FastAPI(
    title="Gostly API",
    description="WhatsApp guest assistant for rental properties",
    version="0.1.0",
)

app.include_router(whatsapp_webhook.router)
app.include_router(admin.router)


@app.get("/health")
async def health():
    return {"status": "ok"}
