from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from routers.rooms import rooms_router
from lifecycle import ConnectionLifecycle
from transport import ConnectionManager
from schemas.rooms import StatusResponse
from constants import CORS_ORIGINS, LOG_FILE, LOG_LEVEL
import json
from logging_config import get_logger, setup_logging

# Setup logging
setup_logging(log_level=LOG_LEVEL, log_file=LOG_FILE)
logger = get_logger(__name__)

app = FastAPI(title="Mesh Signaling Hub")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

app.include_router(rooms_router)

# One hub per process; all room state lives inside it.
app.state.hub = ConnectionLifecycle()
app.state.connections = ConnectionManager()

logger.info("FastAPI application initialized")


@app.get("/", response_model=StatusResponse)
async def status():
    return StatusResponse(
        status="ok",
        service="WebRTC signaling hub",
        rooms=len(app.state.hub.registry),
        connections=len(app.state.connections),
    )


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """Signaling channel for one participant.

    Every frame is a JSON object with a "type" field. The hub's replies and
    notifications for this participant are written back on the same socket.
    """
    hub: ConnectionLifecycle = websocket.app.state.hub
    connections: ConnectionManager = websocket.app.state.connections

    await websocket.accept()
    connection_id, deliveries = hub.connect()
    connections.register(connection_id, websocket)
    connections.deliver(deliveries)

    message_count = 0
    try:
        while True:
            data = await websocket.receive_text()
            message_count += 1
            logger.debug(f"Received message #{message_count} from connection {connection_id}")

            try:
                event = json.loads(data)
            except json.JSONDecodeError:
                logger.warning(f"Connection {connection_id} sent a frame that is not JSON")
                connections.deliver(hub.reject(connection_id, "Invalid JSON"))
                continue

            connections.deliver(hub.handle(event, connection_id))
    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected normally for connection {connection_id}")
    except Exception as e:
        logger.error(f"WebSocket error for connection {connection_id}: {e}", exc_info=True)
    finally:
        connections.deliver(hub.disconnect(connection_id))
        await connections.unregister(connection_id)
