from fastapi import FastAPI

from storefront import config
from storefront.database import Base, engine
from storefront.errors import register_exception_handlers
from storefront.health import router as health_router
from storefront.logging_config import configure_logging
from storefront.routes import router
import storefront.models  # noqa: F401  (registers tables on Base)

configure_logging(config.LOG_LEVEL)

app = FastAPI(title="Storefront Checkout Service")

register_exception_handlers(app)
app.include_router(router)
app.include_router(health_router)

Base.metadata.create_all(bind=engine)
