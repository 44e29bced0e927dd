"""
Run the FastAPI application with uvicorn.

Usage:
    python run.py
    python run.py --reload                 # Development mode with auto-reload
    python run.py --port 8080              # Custom port
    python run.py --store local            # In-memory record store
    python run.py --store local --store-path ./data/store.json
"""
import argparse
import os
import uvicorn


def main():
    parser = argparse.ArgumentParser(description="Run the Approval Desk API server")
    parser.add_argument(
        "--host",
        type=str,
        default="127.0.0.1",
        help="Host to bind to (default: 127.0.0.1)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to bind to (default: 8000)"
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload for development"
    )
    parser.add_argument(
        "--store",
        choices=["mongo", "local"],
        default=None,
        help="Record store backend (default: STORE_BACKEND setting)"
    )
    parser.add_argument(
        "--store-path",
        type=str,
        default=None,
        help="JSON file for the local store (default: memory only)"
    )

    args = parser.parse_args()

    # Settings are read when the app module is imported, so pass overrides via env
    if args.store:
        os.environ["STORE_BACKEND"] = args.store
    if args.store_path:
        os.environ["LOCAL_STORE_PATH"] = args.store_path

    print("Starting Approval Desk API server...")
    print(f"  Host: {args.host}")
    print(f"  Port: {args.port}")
    print(f"  Reload: {args.reload}")
    print(f"  Store: {os.environ.get('STORE_BACKEND', 'from settings')}")
    print()

    # Sessions and refresh jobs live in process memory, so one worker only
    uvicorn.run(
        "approval_desk.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        workers=1
    )


if __name__ == "__main__":
    main()
