# run.py

import uvicorn
from uaroute.config import settings

if __name__ == "__main__":
    uvicorn.run(
        "uaroute.main:app",
        host=settings.host,
        port=settings.port,
        reload=False,
        workers=1,  # Single worker - redirect counters are in-memory
    )
