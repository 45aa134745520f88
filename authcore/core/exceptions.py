"""
exceptions.py

인증/계정 라이프사이클에서 발생하는 예외(Exception) 정의 파일.

서비스 계층은 HTTPException 대신 이 파일의 예외를 발생시키고,
HTTP 상태 코드로의 변환은 authcore.main의 예외 핸들러가 담당한다.

- AuthError  : 라이프사이클 서비스가 호출자에게 돌려주는 실패 유형
- TokenError : JWT 서명 검증 단계의 실패 유형 (TokenSigner 전용)

"""


class AuthError(Exception):
    status_code: int = 400
    detail: str = "Authentication error"

    def __init__(self, detail: str | None = None):
        if detail is not None:
            self.detail = detail
        super().__init__(self.detail)


class DuplicateAccount(AuthError):
    status_code = 409
    detail = "Email already registered"


# 존재하지 않는 이메일 / 비밀번호 불일치 모두 같은 응답 (계정 존재 여부 노출 방지)
class InvalidCredentials(AuthError):
    status_code = 401
    detail = "Invalid credentials"


class EmailNotVerified(AuthError):
    status_code = 403
    detail = "Please verify your email before logging in"


class AccountNotActive(AuthError):
    status_code = 403
    detail = "Account is not active"


class InvalidRefreshToken(AuthError):
    status_code = 401
    detail = "Invalid refresh token"


class InvalidToken(AuthError):
    status_code = 400
    detail = "Invalid or expired token"


class TokenExpired(AuthError):
    status_code = 400
    detail = "Token has expired"


class AlreadyVerified(AuthError):
    status_code = 400
    detail = "Email is already verified"


class NotFound(AuthError):
    status_code = 404
    detail = "User not found"


class DeliveryFailed(AuthError):
    status_code = 502
    detail = "Failed to send email"


class TokenError(Exception):
    pass


class ExpiredToken(TokenError):
    pass


class InvalidSignature(TokenError):
    pass
