"""
base.py

SQLAlchemy ORM Base 정의 파일.

모든 모델(Account)이 상속받는 공통 Base 클래스를 정의한다.
Alembic 마이그레이션 또한 이 Base의 메타데이터를 기준으로 동작한다.

설계 원칙:
- Base 정의는 단일 파일에서만 관리
- 모델 간 순환 참조 방지

관련 파일:
- authcore.models.*       : 모든 ORM 모델
- alembic/versions        : 마이그레이션

"""

from sqlalchemy.orm import declarative_base

# 모든 ORM 모델이 상속받는 Base 클래스
Base = declarative_base()
