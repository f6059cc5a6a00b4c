"""WebSocket handler subscribing clients to periodic ``metrics_update`` pushes."""

from fastapi import FastAPI, HTTPException, WebSocket

from api.dependencies import resolve_bridge_service
from bridge.registry import WebSocketSubscriber


def register(app: FastAPI, path: str) -> None:
    @app.websocket(path)
    async def metrics_stream(websocket: WebSocket) -> None:
        await websocket.accept()

        try:
            service = resolve_bridge_service(websocket.app)
        except HTTPException as exc:
            await websocket.send_json({"type": "error", "detail": exc.detail})
            await websocket.close(code=1011)
            return

        subscriber = WebSocketSubscriber(websocket)
        service.registry.add(subscriber)
        service.logger.info(f"WebSocket client connected: {subscriber!r} ({len(service.registry)} total)")
        try:
            # Client payloads are ignored; the loop only watches for disconnect.
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break
        finally:
            service.registry.remove(subscriber)
            service.logger.info(f"WebSocket client disconnected: {subscriber!r} ({len(service.registry)} total)")
