"""
Service starter — reads SERVICE env var and starts the requested app.
Used by Docker/Railway to run the treasury API.
"""
import os
import sys
import uvicorn

SERVICE = os.environ.get("SERVICE", "treasury")
PORT = int(os.environ.get("PORT", 8080))

SERVICES = {
    "treasury": ("agents.treasury.main:app", 8012),
}


def main():
    if SERVICE not in SERVICES:
        print(f"ERROR: Unknown service '{SERVICE}'. Options: {', '.join(SERVICES.keys())}")
        sys.exit(1)

    app_path, default_port = SERVICES[SERVICE]
    port = PORT if PORT != 8080 else default_port

    print(f"Starting {SERVICE} on port {port}...")
    uvicorn.run(
        app_path,
        host="0.0.0.0",
        port=port,
        log_level=os.environ.get("LOG_LEVEL", "info").lower(),
    )


if __name__ == "__main__":
    main()
