"""Run the API with uvicorn: `python -m schooladmin`."""

import os

import uvicorn


def main():
    uvicorn.run(
        "schooladmin.main:app",
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8000")),
        reload=os.getenv("ENV", "dev").lower() == "dev",
    )


if __name__ == '__main__':
    main()
