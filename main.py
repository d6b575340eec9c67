"""Local entry point: python main.py (production runs uvicorn devsera.main:app)."""
import os

import uvicorn

if __name__ == "__main__":
    uvicorn.run(
        "devsera.main:app",
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8000")),
        reload=os.getenv("ENVIRONMENT", "development") == "development",
    )
