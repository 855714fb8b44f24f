from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.exceptions import register_exception_handlers
from app.startup import configure_startup_logging, init_database, run_startup_checks

# ========== Kitchen Display System (KDS) ==========
from modules.kds.routes.kds_routes import router as kds_router, realtime_notifier
from modules.kds.services.kds_websocket_manager import kds_websocket_manager

configure_startup_logging()

app = FastAPI(
    title="Kitchen Workflow API",
    description="""
    Order lifecycle and kitchen workflow orchestration for restaurants.

    * **Kitchen queues** - pending / in progress / ready views per station
    * **Order transitions** - start, complete, pause, resume, cancel, deliver, refund
    * **Station routing** - keyword based routing of items to kitchen stations
    * **Realtime updates** - WebSocket topics per order, station and kitchen
    """,
    version="1.0.0",
)

# Register exception handlers for consistent error responses
register_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(kds_router)


@app.on_event("startup")
async def startup_event():
    """Validate configuration, create tables and seed stations"""
    run_startup_checks()
    init_database()


@app.on_event("shutdown")
async def shutdown_event():
    """Flush pending broadcasts and close display connections"""
    await realtime_notifier.drain()
    await kds_websocket_manager.close_all_connections()


@app.get("/")
def read_root():
    return {"message": "Kitchen workflow service is running"}
