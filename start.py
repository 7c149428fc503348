import os
import subprocess


def run_fastapi():
    """Run the tablesync API on $PORT (default 8000)."""
    # One worker: the dispatcher and its table store live in-process.
    subprocess.run(
        [
            "uvicorn",
            "app.main:app",
            "--host",
            os.getenv("HOST", "0.0.0.0"),
            "--port",
            os.getenv("PORT", "8000"),
            "--proxy-headers",
            "--workers",
            "1",
        ],
        check=True,
    )


if __name__ == "__main__":
    print("[start] launching uvicorn on PORT=", os.getenv("PORT", "8000"), flush=True)
    run_fastapi()
