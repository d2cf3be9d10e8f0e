import logging
import os

import uvicorn

if __name__ == "__main__":
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    port = int(os.environ.get("PORT", "3000"))
    print("Starting ChronoSphere Discovery API...")
    print(f"Docs available at: http://localhost:{port}/docs")

    uvicorn.run(
        "discovery.api.server:app",
        host="0.0.0.0",
        port=port,
        log_config=None,
    )
