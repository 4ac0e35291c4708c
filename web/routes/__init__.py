"""
API 라우트 패키지

각 기능별 라우터 모듈:
- health: 헬스 체크
- wallets: 지갑, 시점 잔액, 사용 현황, 정합성 검사
- transfers: 지갑 간 이체
- adjustments: 수동 잔액 조정
- transactions: 입금/출금 전표
- orders: 주문, 삭제/복원, 미수금
- workshop_jobs: 외주 가공 작업 목록/합계, 삭제/복원, 지급, 미지급금
- audit: 변경 이력
"""
