"""

ADMIN 초기 계정 생성 스크립트.

- 서버 최초 세팅 시 단 한 번 실행하는 용도
- .env에 정의된 ADMIN_* 환경 변수를 읽어
  이메일 인증 / 활성화가 완료된 ADMIN 계정을 생성한다.
- 같은 이메일의 활성 계정이 이미 있으면 생성하지 않고 종료한다.

사용 방법
- 가상환경 접속
- (.venv) ~\backend~$ python -m scripts.create_admin

"""

import os
from dotenv import load_dotenv
load_dotenv()

from authcore.core.security import hasher
from authcore.db.session import SessionLocal
from authcore.models.account import AccountRole, AccountStatus
from authcore.repositories.accounts import AccountRepository
from authcore.services.auth import normalize_email



def main():
    db = SessionLocal()
    try:
        accounts = AccountRepository(db)

        email = normalize_email(os.environ["ADMIN_EMAIL"])
        password = os.environ["ADMIN_PASSWORD"]

        existing = accounts.get_by_email(email)
        if existing:
            if existing.role != AccountRole.ADMIN:
                raise RuntimeError("Email already exists but is not ADMIN")
            print("✅ ADMIN already exists. Skip creation.")
            return

        accounts.create(
            email=email,
            password_hash=hasher.hash(password),
            first_name=os.environ.get("ADMIN_FIRST_NAME", "Admin"),
            last_name=os.environ.get("ADMIN_LAST_NAME"),
            role=AccountRole.ADMIN,
            status=AccountStatus.ACTIVE,
            is_email_verified=True,
        )

        print(f"🚀 ADMIN created: {email}")

    finally:
        db.close()


if __name__ == "__main__":
    main()
