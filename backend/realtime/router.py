import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from models.messages import Connected
from realtime.handlers import RelayContext, dispatch

logger = logging.getLogger(__name__)

router = APIRouter(tags=["realtime"])


@router.websocket("/ws")
async def relay(websocket: WebSocket):
    """
    One duplex channel per client. The connection is registered on open,
    every text frame is dispatched in arrival order, and the connection is
    removed from the registry however the channel ends.
    """
    state = websocket.app.state
    ctx = RelayContext(store=state.store, engine=state.engine, connections=state.connections)

    connection = await ctx.connections.register(websocket)
    logger.info("Realtime connection opened: %s", connection.connection_id)
    reason = "closed"
    try:
        await ctx.connections.send(connection, Connected(connection_id=connection.connection_id))
        while True:
            raw = await websocket.receive_text()
            await dispatch(ctx, connection, raw)
    except WebSocketDisconnect as exc:
        reason = f"disconnect:{exc.code}"
    except Exception:
        reason = "error"
        logger.exception("Realtime connection %s failed", connection.connection_id)
        raise
    finally:
        await ctx.connections.unregister(connection.connection_id, reason=reason)
        logger.info("Realtime connection closed: %s (%s)", connection.connection_id, reason)
