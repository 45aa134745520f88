"""
config.py

애플리케이션 전역 설정(Configuration) 관리 파일.

이 파일은 .env 환경 변수들을 Pydantic BaseSettings를 통해 로드하여
애플리케이션 전반에서 공통으로 사용하는 설정 값을 제공한다.

주요 설정 항목:
- 데이터베이스 연결 정보
- JWT 서명 시크릿(access / refresh 분리) 및 만료 정책
- 이메일 인증 / 비밀번호 재설정 토큰 만료 시간
- bcrypt work factor
- 메일 발송(SMTP) 설정
- 쿠키 보안 옵션 / CORS 허용 도메인 / 로그 레벨

설계 원칙:
- 모든 환경 변수는 이 파일을 통해서만 접근
- 로컬 / 테스트 / 운영 환경을 .env로 분리하여 관리
- 설정 값은 런타임 중 변경되지 않는 불변 객체로 취급

관련 파일:
- authcore.main               : CORS / 로깅 초기화 시 설정 사용
- authcore.core.security      : JWT 시크릿 / 만료 / bcrypt 설정 사용
- authcore.services.notifier  : SMTP / 링크 URL 설정 사용
- authcore.db.session         : DATABASE_URL 사용

"""

from typing import List, Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


# .env 파일에 정의된 환경 변수를 로드하는 설정 클래스
# extra="ignore" 옵션으로 정의되지 않은 환경 변수는 무시
class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    DATABASE_URL: str
    TEST_DATABASE_URL: str | None = None

    # access / refresh 시크릿은 반드시 분리
    SECRET_KEY: str
    REFRESH_SECRET_KEY: str
    ALGORITHM: str = "HS256"

    ACCESS_TOKEN_EXPIRE_MINUTES: int = 15
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7

    # 1회용 토큰(이메일 인증 / 비밀번호 재설정) 만료 시간
    EMAIL_VERIFICATION_EXPIRE_HOURS: int = 24
    PASSWORD_RESET_EXPIRE_HOURS: int = 1

    # bcrypt work factor (테스트에서는 4로 낮춰서 사용)
    BCRYPT_ROUNDS: int = 12

    # 쿠키/배포 옵션
    # - COOKIE_SECURE: HTTPS 환경에서만 True 권장
    # - COOKIE_SAMESITE: CSRF 완화를 위해 "lax" 기본값
    COOKIE_SECURE: bool = False
    COOKIE_SAMESITE: str = "lax"
    COOKIE_DOMAIN: str | None = None

    # 메일 발송 방식
    # - smtp    : 실제 SMTP 서버로 발송
    # - console : 로그로만 출력 (로컬 개발용)
    EMAIL_BACKEND: Literal["smtp", "console"] = "smtp"
    SMTP_HOST: str = "localhost"
    SMTP_PORT: int = 587
    SMTP_USER: str | None = None
    SMTP_PASSWORD: str | None = None
    SMTP_USE_TLS: bool = True
    SMTP_TIMEOUT: float = 10.0
    EMAIL_FROM: str = "no-reply@localhost"

    # 메일 본문 링크 생성용
    BACKEND_URL: str = "http://localhost:8000"
    FRONTEND_URL: str = "http://localhost:5173"

    LOG_LEVEL: str = "INFO"

    # CORS 허용 도메인 (프론트엔드 주소)
    CORS_ORIGINS: List[str] = ["http://localhost:5173", "http://127.0.0.1:5173"]

# 애플리케이션 전역에서 import하여 사용하는 Settings 인스턴스
# 실행 시 한 번만 생성됨
settings = Settings()
