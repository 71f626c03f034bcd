"""`python -m vocab_backend` でローカル開発サーバを起動する。"""

import os

import uvicorn


def main() -> None:
    uvicorn.run(
        "vocab_backend.main:app",
        host=os.environ.get("HOST", "127.0.0.1"),
        port=int(os.environ.get("PORT", "8000")),
        proxy_headers=True,
    )


if __name__ == "__main__":
    main()
