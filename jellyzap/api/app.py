"""FastAPI app: webhook ingress in front of the supervised WhatsApp session."""

import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from jellyzap import __version__
from jellyzap.api.routes import router
from jellyzap.channels.liveness import LivenessMonitor
from jellyzap.channels.supervisor import ConnectionSupervisor
from jellyzap.channels.whatsapp import make_client_factory
from jellyzap.config.loader import load_config
from jellyzap.config.schema import Config
from jellyzap.utils.logging_config import trace_context


def create_app(
    config: Config | None = None,
    supervisor: ConnectionSupervisor | None = None,
) -> FastAPI:
    """
    Build the app. The lifespan connects the session and starts the liveness
    monitor; nothing touches the network until the server starts.
    """
    config = config or load_config()
    supervisor = supervisor or ConnectionSupervisor(
        make_client_factory(config),
        session_name=config.channels.whatsapp.session,
    )
    monitor = LivenessMonitor(supervisor, interval_seconds=config.liveness.interval_seconds)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        supervisor.start()
        monitor.start()
        yield
        await monitor.stop()
        await supervisor.stop()

    app = FastAPI(title="Jellyzap", version=__version__, lifespan=lifespan)
    app.state.config = config
    app.state.supervisor = supervisor
    app.state.monitor = monitor
    app.include_router(router)

    @app.middleware("http")
    async def trace_requests(request: Request, call_next):
        trace_id = uuid.uuid4().hex[:12]
        with trace_context(trace_id):
            response = await call_next(request)
        response.headers["X-Trace-Id"] = trace_id
        return response

    return app
