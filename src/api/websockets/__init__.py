"""WebSocket registration helpers for the metrics push channel."""

from fastapi import FastAPI

from .handlers import register


def register_websockets(app: FastAPI, path: str = "/ws/metrics") -> None:
    register(app, path)
