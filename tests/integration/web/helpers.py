"""Web API 테스트 헬퍼"""

import jwt

from tests.conftest import USER_ID

JWT_SECRET = "test_jwt_secret_key_xyz"


def make_token(user_id: str = USER_ID, secret: str = JWT_SECRET, **claims) -> str:
    """테스트용 Bearer 토큰"""
    return jwt.encode({"sub": user_id, **claims}, secret, algorithm="HS256")


def auth_headers(user_id: str = USER_ID) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(user_id)}"}
