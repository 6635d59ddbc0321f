import logging
from fastapi import FastAPI
from ticket_engine.api.exceptions import register_error_handler
from ticket_engine.api.v1.routes import events, tiers, check_ins, tickets, hosts
from ticket_engine.core.database import engine
from ticket_engine.core.middleware.http_ctx import HttpContextMiddleware
from ticket_engine.core.middleware.request_id import RequestIdMiddleware
from ticket_engine.core.redis import create_redis
from ticket_engine.domain.profiles.directory import StaticProfileDirectory

logger = logging.getLogger("ticket_engine")


async def lifespan(app: FastAPI):
    r = await create_redis()
    app.state.redis = r
    if getattr(app.state, "profiles", None) is None:
        app.state.profiles = StaticProfileDirectory()
    if r is None:
        logger.info("REDIS_URL not set, audit events are disabled")
    try:
        yield
    finally:
        if r is not None:
            await r.aclose()
        await engine.dispose()


app = FastAPI(title="Ticket Engine", lifespan=lifespan)
app.add_middleware(HttpContextMiddleware, device_id_header="X-Device-ID")
app.add_middleware(RequestIdMiddleware, header_name="X-Request-ID")
register_error_handler(app)
app.include_router(events.router)
app.include_router(tiers.router)
app.include_router(check_ins.router)
app.include_router(tickets.router)
app.include_router(hosts.router)
