#!/usr/bin/env python3
"""Startup script for the Shanghai game backend"""

import os
import uvicorn


def main():
    port = int(os.getenv("PORT", 9494))
    host = os.getenv("HOST", "0.0.0.0")

    print(f"Starting Shanghai Rummy backend on {host}:{port}")
    print(f"Health check available at: http://{host}:{port}/health")
    print(f"WebSocket endpoint: ws://{host}:{port}/ws")

    uvicorn.run(
        "shanghai_engine.main:app",
        host=host,
        port=port,
        reload=os.getenv("RELOAD", "false").lower() == "true",
        log_level=os.getenv("LOG_LEVEL", "info").lower()
    )


if __name__ == "__main__":
    main()
