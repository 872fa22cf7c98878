"""
API 라우트 패키지

각 기능별 라우터 모듈:
- health: 헬스 체크
- ledger: 잔고 원장 동기화/조회/기록
"""
