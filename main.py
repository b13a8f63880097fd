"""
main.py
========
Central entry point for the HindiVoice application.

Run with:
    uvicorn main:app --reload
"""

import logging
import os

from dotenv import load_dotenv

load_dotenv()  # Load .env before any module reads env vars

# Configure logging for the entire application
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

# Keep transport and speech-driver chatter out of the pipeline output.
for _noisy_logger_name in (
    "aiohttp.access",
    "aiohttp.client",
    "asyncio",
    "comtypes",
    "multipart",
):
    logging.getLogger(_noisy_logger_name).setLevel(logging.WARNING)

from hindivoice.api.routes import app  # noqa: F401, E402

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="127.0.0.1", port=8000, reload=True)
