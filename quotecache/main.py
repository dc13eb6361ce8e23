"""Entry point — run with: python -m quotecache.main"""
import uvicorn

from quotecache.api.v1.app import app  # noqa: F401

if __name__ == "__main__":
    uvicorn.run("quotecache.main:app", host="0.0.0.0", port=8080, reload=True)
