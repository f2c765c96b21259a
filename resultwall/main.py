"""Entry: start API server (sequencer and change feed run in its lifespan)."""
import logging
import uvicorn

from resultwall.config import API_HOST, API_PORT

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(name)s: %(message)s")
    uvicorn.run(
        "resultwall.api.app:app",
        host=API_HOST,
        port=API_PORT,
        reload=True,
    )
