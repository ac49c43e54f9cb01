"""
Development launcher for Hub.

    python run.py                 # 127.0.0.1:8000 with auto-reload
    HOST=0.0.0.0 PORT=10000 RELOAD=0 python run.py
"""
import uvicorn

from hub.config import HOST, PORT, RELOAD, USE_POSTGRES

if __name__ == "__main__":
    print(f"Hub on http://{HOST}:{PORT} ({'PostgreSQL' if USE_POSTGRES else 'SQLite'})")
    print("Press Ctrl+C to stop")
    uvicorn.run("hub.main:app", host=HOST, port=PORT, reload=RELOAD)
