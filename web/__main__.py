"""
Web 진입점

실행 방법:
    python -m web
    python -m web --host 0.0.0.0 --port 8080
"""

import argparse

import uvicorn

from core.constants import Defaults


def main() -> None:
    parser = argparse.ArgumentParser(description="Balance Ledger API 서버")
    parser.add_argument("--host", default=Defaults.WEB_HOST, help="바인드 주소")
    parser.add_argument("--port", type=int, default=Defaults.WEB_PORT, help="포트")
    parser.add_argument("--reload", action="store_true", help="코드 변경 시 자동 재시작 (개발용)")
    args = parser.parse_args()

    uvicorn.run(
        "web.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_config=None,  # core.logging 설정 사용
    )


if __name__ == "__main__":
    main()
